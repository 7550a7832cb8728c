"""
MJPEG Streamer Configuration
============================

This module handles configuration loading for the streamer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    MJPEG_BOUNDARY       -> stream.boundary
    MJPEG_ENCODER        -> stream.encoder
    MJPEG_JPEG_QUALITY   -> stream.jpeg_quality
    MJPEG_STATIC_DIR     -> server.static_dir
    MJPEG_PORT           -> server.port
    MJPEG_LOG_LEVEL      -> logging.level
    PORT                 -> server.port (Cloud Run)

Example:
    from mjpeg_streamer.config import settings

    print(settings.stream.boundary)
    print(settings.wave.frame_cap)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from mjpeg_streamer.stream.writer import validate_boundary


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="mjpeg-streamer", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class StreamConfig(BaseModel):
    """Multipart stream and encoder configuration."""

    boundary: str = Field(
        default="abcd4321",
        description="Boundary token shared by every stream of this process",
    )
    encoder: str = Field(
        default="jpeg",
        description="Frame encoder: 'jpeg' or 'png'",
    )
    jpeg_quality: int = Field(
        default=75,
        ge=1,
        le=100,
        description="JPEG quality",
    )
    png_compression: int = Field(
        default=3,
        ge=0,
        le=9,
        description="PNG zlib compression level",
    )
    write_buffer_size: int = Field(
        default=4096,
        ge=1,
        description="Bytes buffered per connection before an implicit send",
    )

    @field_validator("boundary")
    @classmethod
    def _check_boundary(cls, value: str) -> str:
        return validate_boundary(value)

    @field_validator("encoder")
    @classmethod
    def _check_encoder(cls, value: str) -> str:
        if value not in ("jpeg", "png"):
            raise ValueError(f"encoder must be 'jpeg' or 'png', got {value!r}")
        return value


class AnimationConfig(BaseModel):
    """Bounded solid-color animation served on /animation."""

    width: int = Field(default=200, ge=1, le=4096, description="Frame width")
    height: int = Field(default=200, ge=1, le=4096, description="Frame height")
    frame_count: int = Field(default=3, ge=1, description="Frames per session")
    pacing_interval_ms: int = Field(
        default=500,
        ge=0,
        description="Delay between frames in milliseconds",
    )


class WaveConfig(BaseModel):
    """Unbounded sine-wave animation served on /wave."""

    width: int = Field(default=400, ge=1, le=4096, description="Frame width")
    height: int = Field(default=300, ge=1, le=4096, description="Frame height")
    frame_cap: int = Field(
        default=60,
        ge=1,
        description="Practical cap on frames per session",
    )
    pacing_interval_ms: int = Field(
        default=50,
        ge=0,
        description="Delay between frames in milliseconds",
    )


class PictureConfig(BaseModel):
    """Single still image served on /picture."""

    width: int = Field(default=200, ge=1, le=4096, description="Image width")
    height: int = Field(default=200, ge=1, le=4096, description="Image height")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    static_dir: str = Field(
        default="./static",
        description="Directory served under /static (skipped if missing)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the streamer.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    wave: WaveConfig = Field(default_factory=WaveConfig)
    picture: PictureConfig = Field(default_factory=PictureConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_boundary := os.environ.get("MJPEG_BOUNDARY"):
        config_data.setdefault("stream", {})["boundary"] = env_boundary
    if env_encoder := os.environ.get("MJPEG_ENCODER"):
        config_data.setdefault("stream", {})["encoder"] = env_encoder.lower()
    if env_quality := os.environ.get("MJPEG_JPEG_QUALITY"):
        config_data.setdefault("stream", {})["jpeg_quality"] = int(env_quality)

    # Server settings (Cloud Run uses PORT env var)
    if env_static := os.environ.get("MJPEG_STATIC_DIR"):
        config_data.setdefault("server", {})["static_dir"] = env_static
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("MJPEG_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("MJPEG_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
