"""Controllers for migration CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from convert_to_blocks.config import Settings
from convert_to_blocks.migration.agent import MigrationAgent
from convert_to_blocks.migration.models import MigrationOptions, MigrationReport
from convert_to_blocks.migration.pacing import PollPacer
from convert_to_blocks.migration.progress import ProgressView, RichProgressView
from convert_to_blocks.migration.supervisor import MigrationSupervisor


@dataclass(slots=True)
class MigrationStartCommand:
    """CLI input for starting and following a migration."""

    db_path: Path | None
    post_type: str | None
    per_page: str | None
    page: str | None
    only: str | None
    catalog: bool
    reset: bool


@dataclass(slots=True)
class MigrationDbCommand:
    """CLI input for commands that only need the database location."""

    db_path: Path | None


@dataclass(slots=True)
class MigrationStopResult:
    """Stop outcome to render in CLI."""

    lines: list[str]
    stopped: bool


class MigrationCliController:
    """Coordinates start, stop and status CLI operations."""

    def __init__(self, view: ProgressView | None = None) -> None:
        self.view = view

    def start(self, command: MigrationStartCommand) -> list[str]:
        """Start a migration and block until the executor reports completion."""

        options = MigrationOptions.from_raw(
            post_type=command.post_type,
            per_page=command.per_page,
            page=command.page,
            only=command.only,
            catalog=command.catalog,
            reset=command.reset,
        )
        settings = _settings(command.db_path)
        with _agent(settings) as agent:
            supervisor = MigrationSupervisor(
                handle=agent,
                view=self.view or RichProgressView(),
                catalog_available=lambda: settings.catalog.available,
                pacer=PollPacer(
                    poll_interval_seconds=settings.migration.poll_interval_seconds,
                    final_poll_interval_seconds=settings.migration.final_poll_interval_seconds,
                    retry_base_seconds=settings.migration.retry_base_seconds,
                    retry_max_seconds=settings.migration.retry_max_seconds,
                ),
                status_max_retries=settings.migration.status_max_retries,
                stall_timeout_seconds=settings.migration.stall_timeout_seconds,
            )
            report = supervisor.run(options)
        return _render_report(report)

    def stop(self, command: MigrationDbCommand) -> MigrationStopResult:
        settings = _settings(command.db_path)
        with _agent(settings) as agent:
            if not agent.is_running():
                return MigrationStopResult(
                    lines=["Warning: No migrations are currently running"],
                    stopped=False,
                )
            agent.stop()
        return MigrationStopResult(lines=["Success: Migration stopped successfully"], stopped=True)

    def status(self, command: MigrationDbCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _agent(settings) as agent:
            status = agent.get_status()

        if not status.running:
            return ["No migrations are currently running."]
        return [
            "Migration is currently running ...",
            f"{status.progress} [{status.cursor + 1}/{status.total}]",
            f"Active: {status.active}",
        ]

    def init_db(self, command: MigrationDbCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _agent(settings):
            pass
        return [f"Database ready: {settings.db_path}"]


def _settings(db_path: Path | None) -> Settings:
    settings = Settings.from_env(db_path=db_path)
    settings.validate()
    return settings


def _render_report(report: MigrationReport) -> list[str]:
    lines = ["Success: Migration finished successfully."]
    if report.transport_retries:
        lines.append(f"Status read retries: {report.transport_retries}")
    return lines


@contextmanager
def _agent(settings: Settings) -> Iterator[MigrationAgent]:
    agent = MigrationAgent(
        settings.db_path,
        site_url=settings.site_url,
        resume_url_template=settings.migration.resume_url_template,
        busy_timeout_ms=settings.migration.busy_timeout_ms,
    )
    try:
        agent.init_schema()
        yield agent
    finally:
        agent.close()
