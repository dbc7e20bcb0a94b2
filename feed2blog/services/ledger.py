from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from feed2blog.db.models import PostedRecord


class Ledger:
    """
    Permanent record of everything that made it onto the blog.
    Rows are only ever inserted.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def has_been_posted(self, identifier: str) -> bool:
        # callers check guid and link separately, a hit on either column counts
        stmt = (
            select(PostedRecord.id)
            .where(or_(PostedRecord.guid == identifier, PostedRecord.link == identifier))
            .limit(1)
        )
        with Session(self.engine) as session:
            return session.execute(stmt).first() is not None

    def mark_posted(
        self,
        guid: str,
        link: str,
        title: str,
        published_at: datetime | None = None,
        post_url: str | None = None,
    ) -> bool:
        stmt = (
            sqlite_insert(PostedRecord.__table__)
            .values(
                guid=guid,
                link=link,
                title=title,
                published_at=published_at,
                post_url=post_url,
            )
            .on_conflict_do_nothing()
        )
        with Session(self.engine) as session:
            res = session.execute(stmt)
            session.commit()
            return res.rowcount == 1

    def count(self) -> int:
        with Session(self.engine) as session:
            return session.scalar(select(func.count()).select_from(PostedRecord)) or 0

    def recent(self, limit: int = 5) -> list[PostedRecord]:
        with Session(self.engine, expire_on_commit=False) as session:
            return list(
                session.scalars(
                    select(PostedRecord).order_by(PostedRecord.id.desc()).limit(limit)
                )
            )
