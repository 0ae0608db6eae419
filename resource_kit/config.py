"""Configuration management for resource-kit."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


ROOT = Path(__file__).resolve().parents[1]


class ResourceKitSettings(BaseSettings):
    """Tunables for batching and logging."""

    # One frame at 60 Hz.
    batch_window_seconds: float = Field(default=0.016, gt=0)
    default_max_batch_size: Optional[int] = Field(default=None, ge=1)

    log_level: str = "INFO"
    json_logs: bool = True

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, level: str) -> str:
        normalized = level.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {level}")
        return normalized

    model_config = {
        "env_prefix": "RESOURCE_KIT_",
        "env_file": ROOT / ".env",
        "extra": "ignore",
        "case_sensitive": False,
    }


@lru_cache(maxsize=1)
def get_settings() -> ResourceKitSettings:
    return ResourceKitSettings()
