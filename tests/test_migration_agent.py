from __future__ import annotations

import json

import allure
import pytest
from conftest import SITE_URL, RecordingView
from sqlalchemy.exc import OperationalError

from convert_to_blocks.migration.agent import MigrationAgent
from convert_to_blocks.migration.errors import AlreadyRunningError, MigrationTransportError
from convert_to_blocks.migration.models import MigrationOptions
from convert_to_blocks.migration.pacing import PollPacer
from convert_to_blocks.migration.supervisor import MigrationSupervisor
from convert_to_blocks.storage.sqlmodel_models import Post

pytestmark = [
    allure.epic("Bulk Migration"),
    allure.feature("Shared Executor State"),
]


def _seed(agent: MigrationAgent, *post_ids: int, **columns: object) -> None:
    agent.add_posts(Post(post_id=post_id, **columns) for post_id in post_ids)


def test_start_claims_posts_and_returns_resume_url(agent: MigrationAgent) -> None:
    _seed(agent, 3, 1, 2)

    token = agent.start(MigrationOptions())

    assert token.startswith(f"{SITE_URL}/wp-admin/post.php?post=1&action=edit&ctb_client=")
    status = agent.get_status()
    assert status.running is True
    assert status.total == 3
    assert status.cursor == 0
    assert status.progress == 0
    assert status.active == "Post #1"


def test_start_without_matching_posts_returns_empty_token(agent: MigrationAgent) -> None:
    _seed(agent, 1, post_type="attachment")

    assert agent.start(MigrationOptions()) == ""
    assert agent.is_running() is False


def test_start_refuses_second_run_unless_reset(agent: MigrationAgent) -> None:
    _seed(agent, 1, 2)
    first = agent.start(MigrationOptions())

    with pytest.raises(AlreadyRunningError):
        agent.start(MigrationOptions())

    second = agent.start(MigrationOptions(reset=True))
    assert second != first
    assert agent.is_running() is True


def test_stop_is_idempotent(agent: MigrationAgent) -> None:
    agent.stop()
    agent.stop()
    assert agent.get_status().running is False

    _seed(agent, 1)
    agent.start(MigrationOptions())
    agent.stop()
    agent.stop()
    assert agent.get_status().total == 0


def test_reader_observes_progress_written_by_another_process(
    agent: MigrationAgent,
    web_agent: MigrationAgent,
) -> None:
    _seed(agent, 10, 20, 30, 40)
    agent.start(MigrationOptions())
    assert agent.get_status().progress == 0

    next_url = web_agent.record_progress(10)
    agent.invalidate_cache()
    status = agent.get_status()

    assert next_url is not None
    assert "post=20" in next_url
    assert status.cursor == 1
    assert status.progress == 25
    assert status.active == "Post #20"


def test_recording_last_post_finishes_run(agent: MigrationAgent, web_agent: MigrationAgent) -> None:
    _seed(agent, 1, 2)
    agent.start(MigrationOptions())

    web_agent.record_progress(1)
    assert web_agent.record_progress(2) is None

    agent.invalidate_cache()
    status = agent.get_status()
    assert status.running is False
    assert status.cursor == 2
    assert status.progress == 100


def test_record_progress_rejects_unknown_post(agent: MigrationAgent) -> None:
    _seed(agent, 1)
    agent.start(MigrationOptions())

    with pytest.raises(ValueError, match="not part of the running migration"):
        agent.record_progress(99)


def test_record_progress_without_run_is_ignored(agent: MigrationAgent) -> None:
    assert agent.record_progress(1) is None


def test_options_are_persisted_with_state(agent: MigrationAgent) -> None:
    _seed(agent, 1, 2, 3)
    agent.start(MigrationOptions.from_raw(post_type="post", per_page="2"))

    with agent.engine.connect() as connection:
        raw = connection.exec_driver_sql("SELECT options_json FROM migration_state").scalar_one()

    assert json.loads(raw) == {
        "catalog": False,
        "only": None,
        "page": 1,
        "per_page": 2,
        "post_types": ["post"],
    }


def test_status_read_failure_is_reported_as_transport_error(
    agent: MigrationAgent,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _broken_exec(*_args: object, **_kwargs: object) -> None:
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(agent._session, "exec", _broken_exec)

    with pytest.raises(MigrationTransportError, match="database is locked"):
        agent.get_status()


def test_supervisor_follows_browser_driven_run(
    agent: MigrationAgent,
    web_agent: MigrationAgent,
) -> None:
    _seed(agent, 1, 2, 3, 4)
    pending = [1, 2, 3, 4]

    def _browser_converts_one_post(_delay: float) -> None:
        if pending:
            web_agent.record_progress(pending.pop(0))

    view = RecordingView()
    supervisor = MigrationSupervisor(
        handle=agent,
        view=view,
        catalog_available=lambda: False,
        pacer=PollPacer(sleep=_browser_converts_one_post),
    )

    report = supervisor.run(MigrationOptions())

    assert report.total == 4
    assert view.ticks == 4
    assert view.begun == [4]
    assert pending == []
    assert agent.is_running() is False
    assert agent.get_status().total == 0
