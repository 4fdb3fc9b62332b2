"""Unified configuration loaded from .sitedash.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from sitedash.media.uploader import MediaConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sitedash.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "sitedash",
]


class ServerConfig(BaseModel):
    """[server] section."""

    host: str = "127.0.0.1"
    port: int = 5000
    frontend_url: str = "http://localhost:5173"
    environment: str = "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


class ClientConfig(BaseModel):
    """[client] section."""

    api_url: str = "http://localhost:5000"
    cache_dir: str = str(Path.home() / ".cache" / "sitedash")
    timeout: float = 10.0


class MediaSectionConfig(BaseModel):
    """[media] section."""

    cloud_name: str = ""
    upload_preset: str = ""
    folder: str = "dashboard-uploads"


class SiteDashConfig(BaseModel):
    """Top-level configuration for the server, sync client, and uploader."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    media: MediaSectionConfig = Field(default_factory=MediaSectionConfig)

    def to_media_config(self) -> MediaConfig:
        """Convert to MediaConfig for the uploader."""
        return MediaConfig(
            cloud_name=self.media.cloud_name,
            upload_preset=self.media.upload_preset,
            folder=self.media.folder,
        )


def load_config(path: str | Path | None = None) -> SiteDashConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .sitedash.toml in CWD
    3. ~/.config/sitedash/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged SiteDashConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "sitedash" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = SiteDashConfig.model_validate(data) if data else SiteDashConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: SiteDashConfig, **cli_kwargs: object) -> SiteDashConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "host": ("server", "host"),
        "port": ("server", "port"),
        "environment": ("server", "environment"),
        "api_url": ("client", "api_url"),
        "cache_dir": ("client", "cache_dir"),
        "cloud_name": ("media", "cloud_name"),
        "upload_preset": ("media", "upload_preset"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return SiteDashConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: SiteDashConfig) -> SiteDashConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "HOST": ("server", "host"),
        "PORT": ("server", "port"),
        "FRONTEND_URL": ("server", "frontend_url"),
        "SITEDASH_ENV": ("server", "environment"),
        "SITEDASH_API_URL": ("client", "api_url"),
        "SITEDASH_CACHE_DIR": ("client", "cache_dir"),
        "CLOUDINARY_CLOUD_NAME": ("media", "cloud_name"),
        "CLOUDINARY_UPLOAD_PRESET": ("media", "upload_preset"),
        "CLOUDINARY_FOLDER": ("media", "folder"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return SiteDashConfig.model_validate(data)
