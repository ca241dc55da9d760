"""SQLite-backed migration executor state shared with the web application."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from convert_to_blocks.migration.errors import AlreadyRunningError, MigrationTransportError
from convert_to_blocks.migration.models import MigrationOptions, MigrationStatus
from convert_to_blocks.migration.selection import select_post_ids
from convert_to_blocks.storage.alembic_runner import upgrade_head
from convert_to_blocks.storage.common import build_sqlite_engine, utc_now
from convert_to_blocks.storage.sqlmodel_models import DEFAULT_STATE_KEY, MigrationState, Post

DEFAULT_RESUME_URL_TEMPLATE = (
    "{site_url}/wp-admin/post.php?post={post_id}&action=edit&ctb_client={client_id}"
)
logger = logging.getLogger(__name__)


class MigrationAgent:
    """Executor state facade implementing the ``JobHandle`` contract.

    The CLI reads through one long-lived session whose identity map acts as
    a local cache of the shared row; the web application writes the same row
    from another process via ``record_progress``.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        site_url: str = "http://localhost:8080",
        resume_url_template: str = DEFAULT_RESUME_URL_TEMPLATE,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.db_path = db_path
        self.site_url = site_url.rstrip("/")
        self.resume_url_template = resume_url_template
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)
        self._session = Session(self.engine)

    def close(self) -> None:
        """Close underlying DB resources."""

        self._session.close()
        self.engine.dispose()

    def __enter__(self) -> MigrationAgent:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def is_running(self) -> bool:
        return self.get_status().running

    def start(self, options: MigrationOptions) -> str:
        """Claim the run and return the resume URL of its first post.

        Returns an empty string when no posts match ``options``.
        """

        client_id = uuid4().hex
        try:
            with Session(self.engine) as session:
                state = session.get(MigrationState, DEFAULT_STATE_KEY)
                if state is not None and state.running and not options.reset:
                    raise AlreadyRunningError()

                post_ids = select_post_ids(session, options)
                if not post_ids:
                    if state is not None:
                        session.delete(state)
                        session.commit()
                    logger.info("No posts matched migration options %s", options.to_payload())
                    return ""

                now = utc_now()
                if state is None:
                    state = MigrationState(
                        state_key=DEFAULT_STATE_KEY,
                        client_id=client_id,
                        started_at=now,
                        updated_at=now,
                    )
                state.running = True
                state.client_id = client_id
                state.post_ids_json = json.dumps(post_ids)
                state.cursor = 0
                state.active = _describe_post(post_ids[0])
                state.options_json = json.dumps(options.to_payload(), sort_keys=True)
                state.started_at = now
                state.updated_at = now
                session.add(state)
                session.commit()
        except SQLAlchemyError as error:
            raise MigrationTransportError(f"Failed to start migration: {error}") from error
        finally:
            self.invalidate_cache()

        logger.info("Migration %s claimed %d posts", client_id, len(post_ids))
        return self._resume_url(post_id=post_ids[0], client_id=client_id)

    def get_status(self, options: MigrationOptions | None = None) -> MigrationStatus:  # noqa: ARG002
        """Read the shared row, refreshing anything already in the identity map."""

        statement = (
            select(MigrationState)
            .where(MigrationState.state_key == DEFAULT_STATE_KEY)
            .execution_options(populate_existing=True)
        )
        try:
            state = self._session.exec(statement).one_or_none()
        except SQLAlchemyError as error:
            self._session.rollback()
            raise MigrationTransportError(f"Failed to read migration status: {error}") from error
        if state is None:
            return MigrationStatus.idle()
        return _status_from_state(state)

    def stop(self, options: MigrationOptions | None = None) -> None:  # noqa: ARG002
        """Clear executor state; a no-op when nothing was started."""

        try:
            with Session(self.engine) as session:
                state = session.get(MigrationState, DEFAULT_STATE_KEY)
                if state is None:
                    return
                session.delete(state)
                session.commit()
        except SQLAlchemyError as error:
            raise MigrationTransportError(f"Failed to stop migration: {error}") from error
        finally:
            self.invalidate_cache()
        logger.info("Migration state cleared")

    def invalidate_cache(self) -> None:
        # Ends the session's read snapshot so the next read sees the other writer.
        self._session.rollback()
        self._session.expire_all()

    def record_progress(self, post_id: int) -> str | None:
        """Mark ``post_id`` converted and return the resume URL of the next post.

        Called by the web application once per converted post. Returns
        ``None`` when the run is complete or nothing is running.
        """

        try:
            with Session(self.engine) as session:
                state = session.get(MigrationState, DEFAULT_STATE_KEY)
                if state is None or not state.running:
                    logger.warning("Progress for post %s recorded with no running migration", post_id)
                    return None

                post_ids: list[int] = json.loads(state.post_ids_json)
                if post_id not in post_ids:
                    raise ValueError(f"Post {post_id} is not part of the running migration.")

                state.cursor = max(state.cursor, post_ids.index(post_id) + 1)
                state.updated_at = utc_now()
                next_post_id: int | None = None
                if state.cursor >= len(post_ids):
                    state.running = False
                    state.active = ""
                else:
                    next_post_id = post_ids[state.cursor]
                    state.active = _describe_post(next_post_id)
                client_id = state.client_id
                session.add(state)
                session.commit()
        except SQLAlchemyError as error:
            raise MigrationTransportError(f"Failed to record progress: {error}") from error

        if next_post_id is None:
            logger.info("Migration %s converted its last post", client_id)
            return None
        return self._resume_url(post_id=next_post_id, client_id=client_id)

    def add_posts(self, posts: Iterable[Post]) -> int:
        """Insert or update candidate posts; returns how many were written."""

        written = 0
        try:
            with Session(self.engine) as session:
                for post in posts:
                    session.merge(post)
                    written += 1
                session.commit()
        except SQLAlchemyError as error:
            raise MigrationTransportError(f"Failed to write posts: {error}") from error
        return written

    def _resume_url(self, *, post_id: int, client_id: str) -> str:
        return self.resume_url_template.format(
            site_url=self.site_url,
            post_id=post_id,
            client_id=client_id,
        )


def _status_from_state(state: MigrationState) -> MigrationStatus:
    post_ids = json.loads(state.post_ids_json)
    total = len(post_ids)
    cursor = min(max(state.cursor, 0), total)
    progress = 100 if total == 0 or cursor >= total else cursor * 100 // total
    return MigrationStatus(
        running=state.running,
        total=total,
        cursor=cursor,
        progress=progress,
        active=state.active,
    )


def _describe_post(post_id: int) -> str:
    return f"Post #{post_id}"
