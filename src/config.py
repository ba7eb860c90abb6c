"""Configuration loaded from .miniblog.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".miniblog.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "miniblog" / "config.toml"


class BlogSectionConfig(BaseModel):
    """[blog] section."""

    name: str = "Miniblog"
    description: str = "A short description of the blog"
    owner: str = "The Owner"
    posts_per_page: int = 2
    comments_close_after_days: int = 10
    base_url: str = "http://localhost:8000"


class StorageSectionConfig(BaseModel):
    """[storage] section.

    ``backend`` is ``"file"`` (uses ``directory``) or ``"s3"`` (uses
    ``bucket`` and the optional ``prefix``, ``endpoint_url`` and
    ``public_url``).
    """

    backend: str = "file"
    directory: str = "./posts"
    bucket: str = ""
    prefix: str = ""
    endpoint_url: str = ""
    public_url: str = ""


class UserSectionConfig(BaseModel):
    """[user] section — the single blog owner.

    ``password`` holds a hash produced by ``miniblog hash-password``.
    """

    username: str = "demo"
    password: str = ""
    salt: str = ""


class MiniblogConfig(BaseModel):
    """Top-level configuration model."""

    blog: BlogSectionConfig = Field(default_factory=BlogSectionConfig)
    storage: StorageSectionConfig = Field(default_factory=StorageSectionConfig)
    user: UserSectionConfig = Field(default_factory=UserSectionConfig)


def load_config(path: str | Path | None = None) -> MiniblogConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .miniblog.toml in CWD
    3. ~/.config/miniblog/config.toml

    Then overlay environment variables.
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
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = MiniblogConfig.model_validate(data) if data else MiniblogConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: MiniblogConfig, **cli_kwargs: object) -> MiniblogConfig:
    """Overlay explicitly-set CLI flags (those that are not None) onto the config."""
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "storage_backend": ("storage", "backend"),
        "storage_dir": ("storage", "directory"),
        "bucket": ("storage", "bucket"),
        "endpoint_url": ("storage", "endpoint_url"),
        "base_url": ("blog", "base_url"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return MiniblogConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: MiniblogConfig) -> MiniblogConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "MINIBLOG_STORAGE_BACKEND": ("storage", "backend"),
        "MINIBLOG_STORAGE_DIR": ("storage", "directory"),
        "MINIBLOG_S3_BUCKET": ("storage", "bucket"),
        "MINIBLOG_S3_PREFIX": ("storage", "prefix"),
        "MINIBLOG_S3_ENDPOINT_URL": ("storage", "endpoint_url"),
        "MINIBLOG_PUBLIC_URL": ("storage", "public_url"),
        "MINIBLOG_BASE_URL": ("blog", "base_url"),
        "MINIBLOG_USERNAME": ("user", "username"),
        "MINIBLOG_PASSWORD_HASH": ("user", "password"),
        "MINIBLOG_SALT": ("user", "salt"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return MiniblogConfig.model_validate(data)
