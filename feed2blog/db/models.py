from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class QueuedItem(Base):
    """Discovered feed entry waiting for its turn. Rows are never updated."""

    __tablename__ = "queued_links"

    # insertion order == processing order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    link: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    guid: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    snippet: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    queued_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"QueuedItem(id={self.id!r}, guid={self.guid!r}, title={self.title!r})"


class PostedRecord(Base):
    """Append-only proof that an item went live on the blog."""

    __tablename__ = "posted"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    guid: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    link: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    # source-reported publish time, when the feed had one
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    post_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    posted_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow
    )
