from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from feed2blog.models.results import Err
from feed2blog.services.feed_source import FeedSource
from feed2blog.services.ledger import Ledger
from feed2blog.services.work_queue import WorkQueue

logger = logging.getLogger(__name__)


@dataclass
class RefillReport:
    fetched: int = 0
    eligible: int = 0
    added: int = 0
    error: str | None = None


def refill_queue(
    queue: WorkQueue,
    ledger: Ledger,
    feed_source: FeedSource,
    feed_url: str,
    fill_cap: int,
) -> RefillReport:
    """
    Pull the feed and enqueue entries the ledger has never seen, oldest feed
    position first, until `fill_cap` rows were added. The inserts land as one
    batch or not at all.
    """
    logger.info("Queue is empty. Refilling from feed: %s", feed_url)
    report = RefillReport()

    fetched = feed_source.fetch(feed_url)
    if isinstance(fetched, Err):
        logger.warning("Refill aborted: %s", fetched.reason)
        report.error = fetched.reason
        return report

    entries = fetched.value
    report.fetched = len(entries)
    if not entries:
        logger.info("No items in feed.")
        return report

    eligible = [
        e for e in entries
        if not ledger.has_been_posted(e.guid) and not ledger.has_been_posted(e.link)
    ]
    report.eligible = len(eligible)

    try:
        report.added = queue.enqueue_batch(eligible, limit=fill_cap)
    except SQLAlchemyError as e:
        logger.error("Refill batch rolled back: %s", e)
        report.error = f"refill batch failed: {e}"
        return report

    logger.info(
        "Added %d new items to the queue (%d in feed, %d not yet posted).",
        report.added, report.fetched, report.eligible,
    )
    return report
