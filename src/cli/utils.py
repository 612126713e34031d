"""Shared CLI utilities."""

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_pipeline():
    """Build the enrichment pipeline from config (stores + LLM collaborators)."""
    from cli.config import load_config_model
    from proposals.pipeline import EnrichmentPipeline

    return EnrichmentPipeline.from_config(load_config_model())


def confidence_style(confidence: str) -> str:
    return {"high": "green", "medium": "yellow", "low": "red"}.get(str(confidence), "white")
