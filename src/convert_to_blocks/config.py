"""Runtime configuration for the migration CLI."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from convert_to_blocks.migration.agent import DEFAULT_RESUME_URL_TEMPLATE

DEFAULT_DB_PATH = ".convert_to_blocks.db"
DEFAULT_SITE_URL = "http://localhost:8080"


@dataclass(slots=True)
class MigrationSettings:
    """Supervisor pacing, retry and executor connection settings."""

    poll_interval_seconds: float = 5.0
    final_poll_interval_seconds: float = 1.0
    status_max_retries: int = 3
    retry_base_seconds: float = 1.0
    retry_max_seconds: float = 30.0
    stall_timeout_seconds: float = 0.0
    busy_timeout_ms: int = 5000
    resume_url_template: str = DEFAULT_RESUME_URL_TEMPLATE


@dataclass(slots=True)
class CatalogSettings:
    """Block Catalog capability detection."""

    plugin_version: str | None = None

    @property
    def available(self) -> bool:
        return bool(self.plugin_version)


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(DEFAULT_DB_PATH)
    site_url: str = DEFAULT_SITE_URL
    log_level: str = "WARNING"
    migration: MigrationSettings = field(default_factory=MigrationSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("CONVERT_TO_BLOCKS_DB_PATH", DEFAULT_DB_PATH)),
            site_url=os.getenv("CONVERT_TO_BLOCKS_SITE_URL", DEFAULT_SITE_URL),
            log_level=os.getenv("CONVERT_TO_BLOCKS_LOG_LEVEL", "WARNING").upper(),
            migration=MigrationSettings(
                poll_interval_seconds=float(
                    os.getenv("CONVERT_TO_BLOCKS_POLL_INTERVAL_SECONDS", "5.0"),
                ),
                final_poll_interval_seconds=float(
                    os.getenv("CONVERT_TO_BLOCKS_FINAL_POLL_INTERVAL_SECONDS", "1.0"),
                ),
                status_max_retries=int(os.getenv("CONVERT_TO_BLOCKS_STATUS_MAX_RETRIES", "3")),
                retry_base_seconds=float(os.getenv("CONVERT_TO_BLOCKS_RETRY_BASE_SECONDS", "1.0")),
                retry_max_seconds=float(os.getenv("CONVERT_TO_BLOCKS_RETRY_MAX_SECONDS", "30.0")),
                stall_timeout_seconds=float(
                    os.getenv("CONVERT_TO_BLOCKS_STALL_TIMEOUT_SECONDS", "0"),
                ),
                busy_timeout_ms=int(os.getenv("CONVERT_TO_BLOCKS_BUSY_TIMEOUT_MS", "5000")),
                resume_url_template=os.getenv(
                    "CONVERT_TO_BLOCKS_RESUME_URL_TEMPLATE",
                    DEFAULT_RESUME_URL_TEMPLATE,
                ),
            ),
            catalog=CatalogSettings(
                plugin_version=os.getenv("BLOCK_CATALOG_PLUGIN_VERSION") or None,
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any setting is out of range."""

        _validate_site_url(self.site_url)
        _validate_log_level(self.log_level)
        migration = self.migration
        if migration.poll_interval_seconds <= 0:
            raise ValueError("CONVERT_TO_BLOCKS_POLL_INTERVAL_SECONDS must be > 0.")
        if migration.final_poll_interval_seconds <= 0:
            raise ValueError("CONVERT_TO_BLOCKS_FINAL_POLL_INTERVAL_SECONDS must be > 0.")
        if migration.status_max_retries < 0:
            raise ValueError("CONVERT_TO_BLOCKS_STATUS_MAX_RETRIES must be >= 0.")
        if migration.retry_base_seconds < 0 or migration.retry_max_seconds < 0:
            raise ValueError("Retry backoff seconds must be >= 0.")
        if migration.stall_timeout_seconds < 0:
            raise ValueError("CONVERT_TO_BLOCKS_STALL_TIMEOUT_SECONDS must be >= 0.")
        if migration.busy_timeout_ms <= 0:
            raise ValueError("CONVERT_TO_BLOCKS_BUSY_TIMEOUT_MS must be > 0.")


def _validate_site_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid site URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _validate_log_level(value: str) -> None:
    if not isinstance(logging.getLevelName(value), int):
        raise ValueError(f"Invalid CONVERT_TO_BLOCKS_LOG_LEVEL: {value!r}")


def resolve_log_level(cli_value: str | None = None) -> str:
    """Pick the ``--log-level`` value, falling back to CONVERT_TO_BLOCKS_LOG_LEVEL."""

    level = cli_value.upper() if cli_value else Settings.from_env().log_level
    _validate_log_level(level)
    return level
