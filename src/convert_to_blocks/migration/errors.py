"""Error taxonomy surfaced by the migration supervisor."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class MigrationError(Exception):
    """Base migration control error."""

    message: str
    code: str = "migration_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class CatalogUnavailableError(MigrationError):
    """Catalog mode requested but the catalog capability is missing."""

    message: str = "The Block Catalog plugin must be active and indexed to run in --catalog mode."
    code: str = "catalog_unavailable"


@dataclass(slots=True)
class AlreadyRunningError(MigrationError):
    """Another migration is active and no reset was requested."""

    message: str = "Please stop the currently running migration first."
    code: str = "already_running"


@dataclass(slots=True)
class StartFailedError(MigrationError):
    """Start produced no usable token or the job reported itself inactive."""

    message: str = "Failed to start migration."
    code: str = "start_failed"


@dataclass(slots=True)
class MigrationTransportError(MigrationError):
    """Backing-store I/O failed while talking to the executor."""

    code: str = "transport_error"


@dataclass(slots=True)
class MigrationStalledError(MigrationError):
    """Progress did not change within the configured stall timeout."""

    code: str = "stalled"
    stalled_seconds: float = 0.0
