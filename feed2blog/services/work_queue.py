from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from feed2blog.db.models import QueuedItem
from feed2blog.models.schemas import FeedEntry


def _insert_stmt(entry: FeedEntry):
    # DO NOTHING without a target covers both the guid and the link constraint
    return (
        sqlite_insert(QueuedItem.__table__)
        .values(
            guid=entry.guid,
            link=entry.link,
            title=entry.title,
            snippet=entry.snippet,
            published_at=entry.published_at,
        )
        .on_conflict_do_nothing()
    )


class WorkQueue:
    """
    Durable FIFO of discovered, not yet published feed entries.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def enqueue(self, entry: FeedEntry) -> bool:
        with Session(self.engine) as session:
            res = session.execute(_insert_stmt(entry))
            session.commit()
            return res.rowcount == 1

    def enqueue_batch(self, entries: Iterable[FeedEntry], limit: int) -> int:
        """
        Insert entries in order inside one transaction until `limit` rows were
        actually added. Any error rolls back the whole batch and propagates.
        """
        added = 0
        if limit <= 0:
            return added

        with Session(self.engine) as session, session.begin():
            for entry in entries:
                res = session.execute(_insert_stmt(entry))
                added += res.rowcount
                if added >= limit:
                    break
        return added

    def peek_oldest(self) -> QueuedItem | None:
        stmt = select(QueuedItem).order_by(QueuedItem.id.asc()).limit(1)
        with Session(self.engine, expire_on_commit=False) as session:
            return session.scalars(stmt).first()

    def remove(self, item_id: int) -> None:
        with Session(self.engine) as session:
            session.execute(delete(QueuedItem).where(QueuedItem.id == item_id))
            session.commit()

    def size(self) -> int:
        with Session(self.engine) as session:
            return session.scalar(select(func.count()).select_from(QueuedItem)) or 0

    def list_items(self, limit: int = 10) -> list[QueuedItem]:
        with Session(self.engine, expire_on_commit=False) as session:
            return list(
                session.scalars(select(QueuedItem).order_by(QueuedItem.id.asc()).limit(limit))
            )
