"""
Application configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_METADATA_COLUMNS = ["id", "Variable", "Data Source", "Method", "Unit", "LOQ"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    app_name: str = Field(default="LabQC", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173", "http://localhost:8000"],
        description="Allowed CORS origins",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Table Layout
    # ==========================================================================
    variable_column: str = Field(
        default="Variable",
        description="Column holding the measured variable name of each row",
    )
    metadata_columns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_METADATA_COLUMNS),
        description="Columns excluded from the date axis",
    )
    row_id_prefix: str = Field(
        default="row-",
        description="Prefix of the 1-based row identifiers handed to renderers",
    )

    @field_validator("metadata_columns", mode="before")
    @classmethod
    def parse_metadata_columns(cls, v: Any) -> list[str]:
        """Parse metadata columns from comma-separated string."""
        if isinstance(v, str):
            return [col.strip() for col in v.split(",") if col.strip()]
        return v

    # ==========================================================================
    # Formula Engine
    # ==========================================================================
    equality_tolerance: float = Field(
        default=1e-10,
        ge=0,
        description="Absolute tolerance used by == and != comparisons",
    )
    max_conditions_hint: int = Field(
        default=3,
        ge=1,
        description="Workspace formulas with more conditions get a complexity warning",
    )
    max_variables_hint: int = Field(
        default=5,
        ge=1,
        description="Workspace formulas with more variables get a complexity warning",
    )
    parse_cache_size: int = Field(
        default=512,
        ge=0,
        description="Parsed formula texts kept per HighlightService instance",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
