"""
StreamInspector Configuration
=============================

This module handles configuration loading for the stream inspector.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    STREAMINSPECTOR_FETCH_TIMEOUT        -> fetch.timeout_seconds
    STREAMINSPECTOR_LOAD_TIMEOUT         -> extraction.load_timeout_seconds
    STREAMINSPECTOR_SEEK_OFFSET          -> extraction.seek_offset_seconds
    STREAMINSPECTOR_ENFORCE_SAME_ORIGIN  -> extraction.enforce_same_origin_masks
    STREAMINSPECTOR_PORT                 -> server.port
    STREAMINSPECTOR_LOG_LEVEL            -> logging.level
    PORT                                 -> server.port (Cloud Run)

Example:
    from stream_inspector.config import settings

    print(settings.service.name)
    print(settings.extraction.load_timeout_seconds)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="stream-inspector", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class FetchConfig(BaseModel):
    """HTTP fetcher configuration."""

    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for manifests, segments and documents",
    )
    user_agent: str = Field(
        default="stream-inspector/0.1",
        description="User-Agent header sent with every request",
    )


class ExtractionConfig(BaseModel):
    """Frame extraction pipeline configuration."""

    load_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Wall-clock bound for media load + seek",
    )
    surface_attach_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts to acquire a rendering surface before failing",
    )
    surface_retry_delay_ms: int = Field(
        default=100,
        ge=0,
        description="Fixed delay between surface attempts",
    )
    seek_offset_seconds: float = Field(
        default=0.1,
        gt=0,
        description="Seek target; slightly past zero to skip undecoded first frames",
    )
    render_tick_seconds: float = Field(
        default=1.0 / 60.0,
        ge=0,
        description="Delay standing in for one render tick after seek completion",
    )
    mask_luminance_channel: int = Field(
        default=0,
        ge=0,
        le=2,
        description="Color channel read as mask luminance (0=R, 1=G, 2=B)",
    )
    enforce_same_origin_masks: bool = Field(
        default=False,
        description="Reject masks served from a different origin than the stream",
    )


class ComparisonConfig(BaseModel):
    """Stereo registration comparison thresholds."""

    focal_length_tolerance_px: float = Field(
        default=1.0,
        ge=0,
        description="Below this focal length difference the pair is 'nearly identical'",
    )
    parallel_threshold_deg: float = Field(
        default=0.01,
        ge=0,
        description="Below this vergence angle the pair is reported as parallel",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for StreamInspector.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
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

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_timeout := os.environ.get("STREAMINSPECTOR_FETCH_TIMEOUT"):
        config_data.setdefault("fetch", {})["timeout_seconds"] = float(env_timeout)

    # Extraction settings
    if env_load := os.environ.get("STREAMINSPECTOR_LOAD_TIMEOUT"):
        config_data.setdefault("extraction", {})["load_timeout_seconds"] = float(env_load)
    if env_offset := os.environ.get("STREAMINSPECTOR_SEEK_OFFSET"):
        config_data.setdefault("extraction", {})["seek_offset_seconds"] = float(env_offset)
    if env_origin := os.environ.get("STREAMINSPECTOR_ENFORCE_SAME_ORIGIN"):
        config_data.setdefault("extraction", {})["enforce_same_origin_masks"] = (
            env_origin.strip().lower() in ("1", "true", "yes", "on")
        )

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("STREAMINSPECTOR_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    if env_log := os.environ.get("STREAMINSPECTOR_LOG_LEVEL"):
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

settings = load_config()
setup_logging(settings)
