"""SQLModel ORM tables for the shared migration-state database."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel

DEFAULT_STATE_KEY = "default"


class Post(SQLModel, table=True):
    __tablename__ = "posts"  # type: ignore[bad-override]
    __table_args__ = (Index("ix_posts_type_status", "post_type", "post_status"),)

    post_id: int = Field(primary_key=True)
    post_type: str = "post"
    post_status: str = "publish"
    catalog_classic: bool = False


class MigrationState(SQLModel, table=True):
    """Executor-owned run state shared by the CLI and the web application."""

    __tablename__ = "migration_state"  # type: ignore[bad-override]

    state_key: str = Field(default=DEFAULT_STATE_KEY, primary_key=True)
    running: bool = False
    client_id: str
    post_ids_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    cursor: int = 0
    active: str = ""
    options_json: str = Field(default="{}", sa_column=Column(Text, nullable=False))
    started_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
