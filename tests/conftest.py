"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from convert_to_blocks.migration.agent import MigrationAgent
from convert_to_blocks.migration.errors import MigrationError
from convert_to_blocks.migration.models import MigrationOptions, MigrationStatus

SITE_URL = "https://blog.example"


@dataclass
class RecordingView:
    """Progress view that keeps every effect for assertions."""

    handoffs: list[str] = field(default_factory=list)
    begun: list[int] = field(default_factory=list)
    ticks: int = 0
    finished: int = 0

    def handoff(self, token: str, options: MigrationOptions) -> None:  # noqa: ARG002
        self.handoffs.append(token)

    def begin(self, total: int) -> None:
        self.begun.append(total)

    def tick(self) -> None:
        self.ticks += 1

    def finish(self) -> None:
        self.finished += 1


@dataclass
class FakeJobHandle:
    """Scripted job handle; the last scripted status repeats forever."""

    statuses: list[MigrationStatus | MigrationError]
    token: str = "https://blog.example/wp-admin/post.php?post=1&action=edit&ctb_client=abc"
    running: bool = False
    stop_error: MigrationError | None = None
    view: RecordingView | None = None
    calls: list[str] = field(default_factory=list)
    tick_snapshots: list[int] = field(default_factory=list)

    def is_running(self) -> bool:
        self.calls.append("is_running")
        return self.running

    def start(self, options: MigrationOptions) -> str:  # noqa: ARG002
        self.calls.append("start")
        if self.token:
            self.running = True
        return self.token

    def get_status(self, options: MigrationOptions | None = None) -> MigrationStatus:  # noqa: ARG002
        self.calls.append("get_status")
        if self.view is not None:
            self.tick_snapshots.append(self.view.ticks)
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, MigrationError):
            raise item
        return item

    def stop(self, options: MigrationOptions | None = None) -> None:  # noqa: ARG002
        self.calls.append("stop")
        if self.stop_error is not None:
            raise self.stop_error
        self.running = False

    def invalidate_cache(self) -> None:
        self.calls.append("invalidate_cache")


def running(progress: int, total: int = 100, cursor: int | None = None) -> MigrationStatus:
    return MigrationStatus(
        running=True,
        total=total,
        cursor=cursor if cursor is not None else progress * total // 100,
        progress=progress,
        active="Post #1",
    )


def finished(total: int = 100) -> MigrationStatus:
    return MigrationStatus(running=False, total=total, cursor=total, progress=100)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "migration.db"


@pytest.fixture()
def agent(db_path: Path) -> Iterator[MigrationAgent]:
    """CLI-side agent on a freshly migrated database."""

    cli_agent = MigrationAgent(db_path, site_url=SITE_URL)
    cli_agent.init_schema()
    yield cli_agent
    cli_agent.close()


@pytest.fixture()
def web_agent(agent: MigrationAgent, db_path: Path) -> Iterator[MigrationAgent]:  # noqa: ARG001
    """Second connection standing in for the web application process."""

    browser_side = MigrationAgent(db_path, site_url=SITE_URL)
    yield browser_side
    browser_side.close()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BLOCK_CATALOG_PLUGIN_VERSION",
        "CONVERT_TO_BLOCKS_DB_PATH",
        "CONVERT_TO_BLOCKS_SITE_URL",
        "CONVERT_TO_BLOCKS_LOG_LEVEL",
        "CONVERT_TO_BLOCKS_POLL_INTERVAL_SECONDS",
        "CONVERT_TO_BLOCKS_FINAL_POLL_INTERVAL_SECONDS",
        "CONVERT_TO_BLOCKS_STATUS_MAX_RETRIES",
        "CONVERT_TO_BLOCKS_STALL_TIMEOUT_SECONDS",
        "CONVERT_TO_BLOCKS_RESUME_URL_TEMPLATE",
    ):
        monkeypatch.delenv(name, raising=False)
