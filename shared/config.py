"""
Shared configuration management for the Rulecheck Validation Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="VALIDATION_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class EngineConfig(BaseConfig):
    """Rule engine configuration."""

    # Upper bound on nested "when" chains
    max_when_depth: int = Field(default=32, ge=1)
    default_namespace: Optional[str] = Field(default=None)
    enable_metrics: bool = Field(default=True)


def get_config(**overrides) -> EngineConfig:
    """Get rule engine configuration."""
    return EngineConfig(**overrides)
