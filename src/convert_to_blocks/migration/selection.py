"""Work-unit selection used by the executor when a run starts."""

from __future__ import annotations

from sqlmodel import Session, col, select

from convert_to_blocks.migration.models import MigrationOptions
from convert_to_blocks.storage.sqlmodel_models import Post

PUBLISHED_STATUS = "publish"


def select_post_ids(session: Session, options: MigrationOptions) -> list[int]:
    """Return the ordered post ids a run with ``options`` should convert.

    An explicit ``only`` list overrides type, status, catalog and pagination
    filtering; unknown ids are dropped.
    """

    if options.only is not None:
        statement = (
            select(Post.post_id)
            .where(col(Post.post_id).in_(sorted(options.only)))
            .order_by(col(Post.post_id))
        )
        return list(session.exec(statement).all())

    statement = (
        select(Post.post_id)
        .where(col(Post.post_type).in_(sorted(options.post_types)))
        .where(Post.post_status == PUBLISHED_STATUS)
        .order_by(col(Post.post_id))
    )
    if options.catalog_mode:
        statement = statement.where(col(Post.catalog_classic).is_(True))
    if not options.unbounded:
        statement = statement.offset((options.page - 1) * options.per_page).limit(
            options.per_page,
        )
    return list(session.exec(statement).all())
