"""Job handle contract consumed by the migration supervisor."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from convert_to_blocks.migration.models import MigrationOptions, MigrationStatus


@runtime_checkable
class JobHandle(Protocol):
    """Client view of the externally driven migration executor.

    Every call may block on the backing store and may raise
    ``MigrationTransportError``.
    """

    def is_running(self) -> bool:
        """Return whether any migration is active, whoever started it."""
        raise NotImplementedError

    def start(self, options: MigrationOptions) -> str:
        """Request a new run and return the resume token (empty on failure)."""
        raise NotImplementedError

    def get_status(self, options: MigrationOptions | None = None) -> MigrationStatus:
        """Return the latest snapshot, bypassing any read cache."""
        raise NotImplementedError

    def stop(self, options: MigrationOptions | None = None) -> None:
        """Cancel and clean up; safe to call when nothing is running."""
        raise NotImplementedError

    def invalidate_cache(self) -> None:
        """Drop locally cached shared state before the next status read."""
        raise NotImplementedError
