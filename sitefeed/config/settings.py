"""
SiteFeed Configuration System
=============================

Simple configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnhancerSettings(BaseModel):
    """Feed content enhancer configuration."""
    dist_dir: str = Field(default="dist", description="Build output directory")
    feed_filename: str = Field(default="rss.xml", description="Feed document inside dist_dir")
    posts_dir: str = Field(default="posts", description="Directory of rendered post pages inside dist_dir")
    cache_dir: str = Field(default="./tmp/rss-cache", description="Directory for sanitized content cache")
    last_build_time: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the previous build; cached posts not edited since are reused",
    )
    description_length: int = Field(default=50, ge=10, le=1000, description="Length of synthesized descriptions")
    wrapper_class: str = Field(default="-feed-entry-content", description="Class of the element wrapping item content")
    asset_prefix: str = Field(default="/notion/", description="Internal asset path prefix rewritten to absolute URLs")
    icon_src_prefixes: List[str] = Field(
        default_factory=lambda: ["https://www.notion.so/icons/"],
        description="Images whose src starts with one of these are dropped",
    )
    emoji_alt_prefixes: List[str] = Field(
        default_factory=lambda: ["custom emoji with name "],
        description="Images whose alt starts with one of these are dropped",
    )
    autogenerated_section_ids: List[str] = Field(
        default_factory=lambda: [
            "autogenerated-post-comments",
            "autogenerated-media-links",
            "autogenerated-external-links",
        ],
        description="Element ids of generated page sections left out of feed content",
    )

    @field_validator("last_build_time")
    @classmethod
    def assume_utc(cls, v):
        """Treat naive timestamps as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("feed_filename", "posts_dir")
    @classmethod
    def validate_relative(cls, v):
        """Feed and posts locations are relative to dist_dir."""
        if not v or Path(v).is_absolute():
            raise ValueError("must be a non-empty path relative to dist_dir")
        return v

    @property
    def feed_path(self) -> Path:
        return Path(self.dist_dir) / self.feed_filename

    @property
    def posts_path(self) -> Path:
        return Path(self.dist_dir) / self.posts_dir


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class SiteFeedSettings(BaseSettings):
    """Main application settings."""

    enhancer: EnhancerSettings = Field(default_factory=EnhancerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Application metadata
    app_name: str = Field(default="SiteFeed", description="Application name")
    version: str = Field(default="0.3.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "SITEFEED_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        try:
            Path(self.enhancer.cache_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid cache directory: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if self.enhancer.last_build_time and self.enhancer.last_build_time > datetime.now(timezone.utc):
            errors.append("last_build_time is in the future")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> SiteFeedSettings:
    """Load settings from environment variables and defaults.

    Environment variables override Pydantic Field defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = SiteFeedSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[SiteFeedSettings] = None


def get_settings(reload: bool = False) -> SiteFeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
