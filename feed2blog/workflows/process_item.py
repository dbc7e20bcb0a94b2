from __future__ import annotations

import html
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from feed2blog.db.models import QueuedItem
from feed2blog.models.results import Err, Result
from feed2blog.services.blogger_client import BloggerClient
from feed2blog.services.extractor import extract_article
from feed2blog.services.ledger import Ledger
from feed2blog.services.page_fetcher import PageFetcher
from feed2blog.services.rewriter import Rewriter
from feed2blog.services.work_queue import WorkQueue

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    POSTED = "posted"
    REWRITE_FAILED = "rewrite_failed"
    PUBLISH_FAILED = "publish_failed"
    ALREADY_POSTED = "already_posted"
    QUEUE_EMPTY = "queue_empty"
    REFILL_FAILED = "refill_failed"


@dataclass
class ProcessResult:
    outcome: Outcome
    item_id: int | None = None
    title: str | None = None
    post_url: str | None = None
    error: str | None = None


def image_block(image_url: str, alt: str, caption: str) -> str:
    return (
        f'<p><img src="{html.escape(image_url, quote=True)}" alt="{html.escape(alt, quote=True)}" '
        f'title="{html.escape(caption, quote=True)}" style="max-width:100%;height:auto" /></p>\n'
    )


class ItemProcessor:
    """
    Drive one queued item through fetch -> extract -> rewrite -> publish.

    The item leaves the queue on every terminal path; only a confirmed publish
    writes to the ledger. Nothing is retried.

    After a publish the ledger row is written first and the queue row removed
    second. A crash in between leaves a ledgered item at the head of the
    queue, which the dequeue-time ledger check drops on the next cycle.
    """

    def __init__(
        self,
        queue: WorkQueue,
        ledger: Ledger,
        fetcher: PageFetcher,
        rewriter: Rewriter,
        publisher: BloggerClient,
        content_char_limit: int = 12000,
        post_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.queue = queue
        self.ledger = ledger
        self.fetcher = fetcher
        self.rewriter = rewriter
        self.publisher = publisher
        self.content_char_limit = content_char_limit
        self.post_delay_seconds = post_delay_seconds
        self.sleep = sleep

    def _evict(self, item: QueuedItem, outcome: Outcome, error: str | None = None) -> ProcessResult:
        self.queue.remove(item.id)
        return ProcessResult(outcome=outcome, item_id=item.id, title=item.title, error=error)

    @staticmethod
    def _call(step: str, fn: Callable[..., Result], *args) -> Result:
        # collaborators report known failures as Err; anything they raise
        # still has to end as Err or the item would sit at the head forever
        try:
            return fn(*args)
        except Exception as e:
            logger.exception("%s raised", step)
            return Err(f"{step} raised {type(e).__name__}: {e}")

    def _fetch_page(self, url: str) -> str | None:
        try:
            return self.fetcher.fetch(url)
        except Exception:
            logger.exception("Page fetch raised for %s", url)
            return None

    def process(self, item: QueuedItem) -> ProcessResult:
        title = item.title
        logger.info("Processing next queued item: %s", title)

        # the item may have gone out through another run since it was queued
        if self.ledger.has_been_posted(item.guid) or self.ledger.has_been_posted(item.link):
            logger.info("Already posted, dropping from queue: %s", title)
            return self._evict(item, Outcome.ALREADY_POSTED)

        page = self._fetch_page(item.link)
        article = extract_article(page)
        content = article.content[: self.content_char_limit]
        snippet = item.snippet

        rewritten = self._call("rewrite", self.rewriter.rewrite, title, snippet, content)
        if isinstance(rewritten, Err):
            logger.error("Rewrite failed for queued item %r: %s", title, rewritten.reason)
            return self._evict(item, Outcome.REWRITE_FAILED, rewritten.reason)

        body = ""
        if article.image_url:
            alt = self._call("image alt", self.rewriter.image_alt, title, snippet, content)
            if isinstance(alt, Err):
                logger.warning("Alt text fell back to title: %s", alt.reason)
            caption = self._call("image title", self.rewriter.image_caption, title, snippet, content)
            if isinstance(caption, Err):
                logger.warning("Image title fell back to title: %s", caption.reason)
            body += image_block(
                article.image_url,
                title if isinstance(alt, Err) else alt.value,
                title if isinstance(caption, Err) else caption.value,
            )
        body += rewritten.value

        tags = self._call("tags", self.rewriter.tags, title, snippet, content)
        if isinstance(tags, Err):
            logger.warning("Tag generation failed, posting without labels: %s", tags.reason)
            labels: list[str] = []
        else:
            labels = tags.value

        published = self._call("publish", self.publisher.create_post, title, body, labels)
        if isinstance(published, Err):
            logger.error("Failed to post to Blogger for %r: %s", title, published.reason)
            return self._evict(item, Outcome.PUBLISH_FAILED, published.reason)

        post = published.value
        logger.info("Posted to Blogger: %s", post.ref)

        self.ledger.mark_posted(
            guid=item.guid,
            link=item.link,
            title=title,
            published_at=item.published_at,
            post_url=post.url or post.id,
        )
        self.queue.remove(item.id)

        # courtesy pause before the Blogger API sees us again
        self.sleep(self.post_delay_seconds)
        return ProcessResult(outcome=Outcome.POSTED, item_id=item.id, title=title, post_url=post.ref)
