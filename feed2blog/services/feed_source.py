from __future__ import annotations

import logging
from datetime import datetime, timezone

import feedparser
import requests

from feed2blog.models.results import Err, Ok, Result
from feed2blog.models.schemas import FeedEntry

logger = logging.getLogger(__name__)


def _published(entry: dict) -> datetime | None:
    t = entry.get("published_parsed") or entry.get("updated_parsed")
    if not t:
        return None
    return datetime(*t[:6], tzinfo=timezone.utc)


def entry_from_feed(entry: dict) -> FeedEntry | None:
    """
    Map one feedparser entry to a FeedEntry.
    guid falls back to link, then title; entries without a guid or link are dropped.
    """
    link = (entry.get("link") or "").strip()
    title = (entry.get("title") or "").strip()
    # feedparser exposes <guid> / <id> as "id"
    guid = (entry.get("id") or entry.get("guid") or link or title).strip()
    if not guid or not link:
        return None

    content = None
    if entry.get("content"):
        content = entry["content"][0].get("value")

    return FeedEntry(
        guid=guid,
        link=link,
        title=title or "Untitled",
        snippet=entry.get("summary"),
        content=content,
        published_at=_published(entry),
    )


class FeedSource:
    def __init__(self, user_agent: str, timeout: float = 30, session: requests.Session | None = None) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> Result[list[FeedEntry]]:
        try:
            r = self.session.get(url, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            return Err(f"feed fetch failed: {e}")

        feed = feedparser.parse(r.content)
        # feedparser is lenient; only give up if nothing usable came out
        if not feed.entries and (feed.bozo or not feed.get("version")):
            reason = feed.get("bozo_exception") or "unrecognized feed format"
            return Err(f"feed parse failed: {reason}")
        if feed.bozo:
            logger.warning("Feed %s is malformed: %s", url, feed.get("bozo_exception"))

        entries = []
        for raw in feed.entries:
            e = entry_from_feed(raw)
            if e is None:
                logger.debug("Skipping feed entry without guid/link: %r", raw.get("title"))
                continue
            entries.append(e)
        return Ok(entries)
