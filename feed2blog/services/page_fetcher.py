from __future__ import annotations

import logging

import requests

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch article HTML. Any failure returns None."""

    def __init__(self, user_agent: str, timeout: float = 15, session: requests.Session | None = None) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str | None:
        try:
            r = self.session.get(url, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Fetch page error for %s: %s", url, e)
            return None
        return r.text
