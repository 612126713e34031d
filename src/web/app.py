"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.routes import artifacts, customers, interests

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("web.startup")
    yield
    logger.info("web.shutdown")


app = FastAPI(
    title="Clientbook",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS — allow frontend origin
frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers.router)
app.include_router(interests.router)
app.include_router(artifacts.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
