from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from feed2blog.config.settings import Settings
from feed2blog.services.blogger_client import BloggerClient
from feed2blog.services.feed_source import FeedSource
from feed2blog.services.ledger import Ledger
from feed2blog.services.page_fetcher import PageFetcher
from feed2blog.services.rewriter import Rewriter
from feed2blog.services.work_queue import WorkQueue
from feed2blog.workflows.process_item import ItemProcessor, Outcome, ProcessResult
from feed2blog.workflows.refill import refill_queue

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    queue: WorkQueue
    ledger: Ledger
    feed_source: FeedSource
    processor: ItemProcessor
    feed_url: str
    fill_cap: int


def build_pipeline(settings: Settings, engine: Engine) -> Pipeline:
    queue = WorkQueue(engine)
    ledger = Ledger(engine)
    processor = ItemProcessor(
        queue=queue,
        ledger=ledger,
        fetcher=PageFetcher(settings.user_agent, timeout=settings.page_timeout_seconds),
        rewriter=Rewriter(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.openai_max_tokens,
        ),
        publisher=BloggerClient(
            client_id=settings.blogger_client_id,
            client_secret=settings.blogger_client_secret,
            refresh_token=settings.blogger_refresh_token,
            blog_id=settings.blog_id,
        ),
        content_char_limit=settings.content_char_limit,
        post_delay_seconds=settings.post_delay_seconds,
    )
    return Pipeline(
        queue=queue,
        ledger=ledger,
        feed_source=FeedSource(settings.user_agent),
        processor=processor,
        feed_url=settings.feed_url,
        fill_cap=settings.max_queue_fill,
    )


def run_cycle(p: Pipeline) -> ProcessResult:
    """
    One cycle: take the queue head (refilling from the feed only when the
    queue is empty) and process it. At most one item is handled.
    """
    item = p.queue.peek_oldest()

    if item is None:
        report = refill_queue(p.queue, p.ledger, p.feed_source, p.feed_url, p.fill_cap)
        if report.error:
            return ProcessResult(outcome=Outcome.REFILL_FAILED, error=report.error)
        item = p.queue.peek_oldest()

    if item is None:
        logger.info("No new items found to process.")
        return ProcessResult(outcome=Outcome.QUEUE_EMPTY)

    return p.processor.process(item)
