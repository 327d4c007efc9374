"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts without any configuration; in a deployment you should
at least set ``DATABASE_URL`` and ``SITE_URL``.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "All-Posts API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # REST namespace the router is mounted under.  The endpoint itself is
    # always ``/all-posts`` so the full path becomes
    # ``/custom-endpoint/v1/all-posts`` with the default value.
    namespace: str = os.getenv("API_NAMESPACE", "custom-endpoint/v1")

    # Path or connection string for the SQLite content store.  Relative
    # paths are resolved against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "content.db")

    # Base URL used to build the ``link`` field of every post.
    site_url: str = os.getenv("SITE_URL", "http://localhost:8000")

    # When disabled, no custom-field provider is wired in and responses
    # carry no ``acf`` key at all.
    custom_fields_enabled: bool = _env_flag("CUSTOM_FIELDS_ENABLED", "true")

    # Taxonomies which are never attached to output records.
    ignored_taxonomies: Tuple[str, ...] = field(
        default_factory=lambda: _env_list("IGNORED_TAXONOMIES", "post_format")
    )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
