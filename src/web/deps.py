"""Dependency injection for FastAPI routes."""

from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Header

from cli.config import load_config_model
from proposals.pipeline import EnrichmentPipeline

logger = structlog.get_logger()


@lru_cache
def get_config():
    """Load shared config from the standard locations."""
    return load_config_model()


@lru_cache
def get_pipeline() -> EnrichmentPipeline:
    """One pipeline (stores + LLM collaborators) per process."""
    return EnrichmentPipeline.from_config(get_config())


def get_actor_id(x_rm_id: Optional[str] = Header(None)) -> Optional[str]:
    """Acting RM id from the X-RM-Id header. Authentication happens upstream."""
    return x_rm_id or None
