"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TilerSettings(BaseSettings):
    """Container geometry and packing configuration.

    Geometry defaults describe the OMAP4 TILER container.
    """

    model_config = SettingsConfigDict(
        env_prefix="TILER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    page_size: int = Field(
        default=4096,
        ge=256,
        le=65536,
        description="Bytes in one addressable container row",
    )

    container_width: int = Field(
        default=256,
        ge=1,
        le=4096,
        description="Container width in slots",
    )

    container_height: int = Field(
        default=128,
        ge=1,
        le=4096,
        description="Container height in slots",
    )

    co_packing_enabled: bool = Field(
        default=True,
        description="Allow NV12 luma and chroma planes to share one area",
    )

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Validate page_size is a power of 2."""
        if v & (v - 1) != 0:
            raise ValueError("page_size must be a power of 2")
        return v


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TILER_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_output: bool = Field(
        default=True,
        description="Render JSON lines (False = colored console output)",
    )


class Settings(BaseSettings):
    """Root settings container.

    Aggregates all subsettings into a single object.

    Example:
        >>> settings = Settings()
        >>> settings.tiler.container_width
        256
        >>> settings.logging.level
        'INFO'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tiler: TilerSettings = Field(default_factory=TilerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton.

    Loads configuration from environment variables and .env file.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings (for testing).

    Forces reload of configuration from environment.

    Returns:
        Fresh Settings instance.
    """
    global _settings
    _settings = Settings()
    return _settings
