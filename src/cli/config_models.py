"""Pydantic configuration models for clientbook."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "claude", "openai"}


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "auto"
    model: Optional[str] = None  # None = provider's cheap-tier default
    api_key: Optional[str] = None
    max_tokens: int = 2000

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/clientbook/clientbook.db")
    log_file: Path = Path("~/clientbook/clientbook.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


class NudgeConfig(BaseModel):
    """Follow-up question selection."""

    quota_percent: int = 20
    max_questions: int = 10

    @field_validator("quota_percent")
    @classmethod
    def validate_quota(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"quota_percent must be 1-100, got {v}")
        return v

    @field_validator("max_questions")
    @classmethod
    def validate_max(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_questions must be >= 0, got {v}")
        return v


class RetryConfig(BaseModel):
    """Retry/backoff configuration."""

    max_attempts: int = 3
    min_wait: float = 2.0
    max_wait: float = 10.0
    llm_max_wait: float = 30.0


class LimitsConfig(BaseModel):
    """Resource limits configuration."""

    note_max_chars: int = 8000
    note_fallback_chars: int = 200
    artifact_page_size: int = 50
    llm_max_tokens: int = 2000


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ClientbookConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    nudges: NudgeConfig = Field(default_factory=NudgeConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in API keys."""
        if self.llm.api_key:
            key = self.llm.api_key
            if key.startswith("${") and key.endswith("}"):
                env_var = key[2:-1]
                self.llm.api_key = os.getenv(env_var, "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "ClientbookConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
