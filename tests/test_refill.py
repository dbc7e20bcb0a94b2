import tempfile
import unittest
from pathlib import Path

from feed2blog.db.database import init_db, make_engine
from feed2blog.models.results import Err, Ok
from feed2blog.models.schemas import FeedEntry
from feed2blog.services.ledger import Ledger
from feed2blog.services.work_queue import WorkQueue
from feed2blog.workflows.refill import refill_queue

FEED_URL = "https://example.com/feed.xml"


def entry(n: int, **kw) -> FeedEntry:
    data = {"guid": f"guid-{n}", "link": f"https://example.com/{n}", "title": f"Story {n}"}
    data.update(kw)
    return FeedEntry(**data)


class FakeFeedSource:
    def __init__(self, result) -> None:
        self.result = result
        self.calls: list[str] = []

    def fetch(self, url: str):
        self.calls.append(url)
        return self.result


class RefillTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.engine = make_engine(f"sqlite:///{Path(self._tmp.name) / 'posts.db'}")
        init_db(self.engine)
        self.queue = WorkQueue(self.engine)
        self.ledger = Ledger(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()
        self._tmp.cleanup()

    def _refill(self, result, cap: int = 100):
        return refill_queue(self.queue, self.ledger, FakeFeedSource(result), FEED_URL, cap)

    def guids(self) -> list[str]:
        return [i.guid for i in self.queue.list_items(100)]

    def test_fill_cap_keeps_feed_order(self) -> None:
        report = self._refill(Ok([entry(1), entry(2), entry(3)]), cap=2)
        self.assertEqual(report.added, 2)
        self.assertEqual(self.guids(), ["guid-1", "guid-2"])

    def test_item_beyond_cap_comes_back_on_later_refill(self) -> None:
        feed = Ok([entry(1), entry(2), entry(3)])
        self._refill(feed, cap=2)
        for item in self.queue.list_items():
            self.queue.remove(item.id)
            self.ledger.mark_posted(item.guid, item.link, item.title)

        report = self._refill(feed, cap=2)
        self.assertEqual(report.added, 1)
        self.assertEqual(self.guids(), ["guid-3"])

    def test_ledgered_items_are_skipped_by_guid_or_link(self) -> None:
        self.ledger.mark_posted("guid-1", "https://elsewhere/1", "Story 1")
        self.ledger.mark_posted("other-guid", "https://example.com/2", "Story 2")
        report = self._refill(Ok([entry(1), entry(2), entry(3)]))
        self.assertEqual(report.fetched, 3)
        self.assertEqual(report.eligible, 1)
        self.assertEqual(self.guids(), ["guid-3"])

    def test_same_guid_in_consecutive_refills_is_kept_once(self) -> None:
        self._refill(Ok([entry(1)]))
        report = self._refill(Ok([entry(1, link="https://example.com/moved")]))
        self.assertEqual(report.added, 0)
        self.assertEqual(self.queue.size(), 1)

    def test_second_refill_with_unchanged_feed_is_a_no_op(self) -> None:
        feed = Ok([entry(1), entry(2), entry(3)])
        self.ledger.mark_posted("guid-2", "https://example.com/2", "Story 2")
        self._refill(feed)
        before = [(i.id, i.guid) for i in self.queue.list_items()]

        report = self._refill(feed)
        self.assertEqual(report.added, 0)
        self.assertEqual([(i.id, i.guid) for i in self.queue.list_items()], before)

    def test_feed_failure_leaves_queue_untouched(self) -> None:
        self.queue.enqueue(entry(9))
        report = self._refill(Err("feed fetch failed: timeout"))
        self.assertEqual(report.error, "feed fetch failed: timeout")
        self.assertEqual(report.added, 0)
        self.assertEqual(self.guids(), ["guid-9"])

    def test_empty_feed(self) -> None:
        report = self._refill(Ok([]))
        self.assertIsNone(report.error)
        self.assertEqual(self.queue.size(), 0)

    def test_storage_failure_rolls_back_whole_batch(self) -> None:
        broken = FeedEntry.model_construct(
            guid="guid-x", link="https://example.com/x", title=None, snippet=None, published_at=None
        )
        report = self._refill(Ok([entry(1), entry(2), broken]))
        self.assertIn("refill batch failed", report.error)
        self.assertEqual(self.queue.size(), 0)


if __name__ == "__main__":
    unittest.main()
