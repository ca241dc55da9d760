"""Control loop that starts a migration and follows it to completion.

The executor does its work out of process, driven by a browser against the
web application, so this loop only observes shared state:

- validate preconditions (catalog capability, reset, already running);
- start the run and hand the resume token to the operator;
- poll status, turning percentage progress into a bounded tick stream;
- pace polls and invalidate the local cache of shared state between reads;
- stop the executor once it reports itself inactive.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from convert_to_blocks.migration.errors import (
    AlreadyRunningError,
    CatalogUnavailableError,
    MigrationError,
    MigrationStalledError,
    MigrationTransportError,
    StartFailedError,
)
from convert_to_blocks.migration.handle import JobHandle
from convert_to_blocks.migration.models import (
    MigrationOptions,
    MigrationReport,
    MigrationStatus,
    SupervisorState,
    TickState,
)
from convert_to_blocks.migration.pacing import PollPacer
from convert_to_blocks.migration.progress import ProgressView, required_ticks, tick_increments

logger = logging.getLogger(__name__)


class MigrationSupervisor:
    """Drives one migration run through validate, start, poll and drain."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        handle: JobHandle,
        view: ProgressView,
        catalog_available: Callable[[], bool],
        pacer: PollPacer | None = None,
        status_max_retries: int = 3,
        stall_timeout_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.handle = handle
        self.view = view
        self.catalog_available = catalog_available
        self.pacer = pacer or PollPacer()
        self.status_max_retries = status_max_retries
        self.stall_timeout_seconds = stall_timeout_seconds
        self.clock = clock
        self.state = SupervisorState.IDLE
        self.ticks = TickState()
        self.transport_retries = 0

    def run(self, options: MigrationOptions) -> MigrationReport:
        """Run the full cycle; raises ``MigrationError`` on terminal failure."""

        self.transport_retries = 0
        try:
            token, status = self._validate_and_start(options)
        except Exception:
            self._transition(SupervisorState.ERROR)
            raise

        self._transition(SupervisorState.POLLING)
        try:
            self.view.handoff(token, options)
            self.ticks = TickState()
            self.view.begin(status.total)
            report = self._poll_until_finished(token=token, options=options, total=status.total)
            self._transition(SupervisorState.DRAINING)
            self._drain(total=report.total)
        except Exception:
            self._transition(SupervisorState.ERROR)
            self._cleanup()
            raise
        finally:
            self.view.finish()

        report.ticks_emitted = self.ticks.ticks_emitted
        report.transport_retries = self.transport_retries
        self._cleanup()
        self._transition(SupervisorState.IDLE)
        return report

    def _validate_and_start(self, options: MigrationOptions) -> tuple[str, MigrationStatus]:
        self._transition(SupervisorState.VALIDATING)
        if options.catalog_mode and not self.catalog_available():
            raise CatalogUnavailableError()

        if options.reset:
            self.handle.stop(options)

        if self.handle.is_running() and not options.reset:
            raise AlreadyRunningError()

        self._transition(SupervisorState.STARTING)
        token = self.handle.start(options)
        if not token:
            raise StartFailedError("No posts to migrate.")

        # the run is claimed from here on; release it if it never gets to polling
        try:
            status = self._read_status(options)
            if not status.running:
                raise StartFailedError()
        except Exception:
            self._cleanup()
            raise
        logger.info("Migration started: total=%d token=%s", status.total, token)
        return token, status

    def _read_status(self, options: MigrationOptions | None = None) -> MigrationStatus:
        """Fresh status read, retrying transport failures with capped backoff."""

        failures = 0
        while True:
            self.handle.invalidate_cache()
            try:
                return self.handle.get_status(options)
            except MigrationTransportError as error:
                failures += 1
                self.transport_retries += 1
                if failures > self.status_max_retries:
                    raise
                delay = self.pacer.backoff(retry_number=failures)
                logger.warning(
                    "Status read failed (%d/%d), retrying in %.1fs: %s",
                    failures,
                    self.status_max_retries,
                    delay,
                    error,
                )

    def _poll_until_finished(
        self,
        *,
        token: str,
        options: MigrationOptions,
        total: int,
    ) -> MigrationReport:
        report = MigrationReport(token=token, total=total, ticks_emitted=0, polls=0, options=options)
        last_change_at = self.clock()

        while True:
            status = self._read_status()
            report.polls += 1
            if not status.running:
                if status.total:
                    report.total = status.total
                return report

            report.total = status.total
            if status.progress != self.ticks.last_seen_progress:
                self._advance(status)
                last_change_at = self.clock()
            elif self.stall_timeout_seconds > 0:
                stalled_for = self.clock() - last_change_at
                if stalled_for > self.stall_timeout_seconds:
                    raise MigrationStalledError(
                        f"No migration progress for {stalled_for:.0f}s "
                        f"(stuck at {status.progress}%).",
                        stalled_seconds=stalled_for,
                    )

            self.pacer.wait(ticks_emitted=self.ticks.ticks_emitted, total=status.total)

    def _advance(self, status: MigrationStatus) -> None:
        required = min(required_ticks(status.progress, status.total), status.total)
        for _ in tick_increments(self.ticks.ticks_emitted, required):
            self.view.tick()
            self.ticks.ticks_emitted += 1
        self.ticks.last_seen_progress = status.progress

    def _drain(self, *, total: int) -> None:
        for _ in tick_increments(self.ticks.ticks_emitted, total):
            self.view.tick()
            self.ticks.ticks_emitted += 1

    def _cleanup(self) -> None:
        try:
            self.handle.stop()
        except MigrationError as error:
            logger.warning("Migration cleanup failed: %s", error)

    def _transition(self, state: SupervisorState) -> None:
        logger.debug("Supervisor %s -> %s", self.state.value, state.value)
        self.state = state
