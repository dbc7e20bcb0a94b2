from __future__ import annotations

import logging
import time

import requests

from feed2blog.models.results import Err, Ok, Result
from feed2blog.models.schemas import PublishedPost

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
POSTS_URL = "https://www.googleapis.com/blogger/v3/blogs/{blog_id}/posts/"


def _str_or_none(v) -> str | None:
    return str(v) if v is not None else None


class BloggerClient:
    """
    Minimal Blogger v3 client: OAuth refresh-token grant + posts.insert.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        blog_id: str,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.blog_id = blog_id
        self.session = session or requests.Session()
        self.timeout = timeout
        self._access_token: str | None = None
        self._expires_at = 0.0

    def _token(self) -> str:
        # refresh a minute early
        if self._access_token and time.time() < self._expires_at - 60:
            return self._access_token

        r = self.session.post(
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.timeout,
        )
        r.raise_for_status()
        data = r.json()
        self._access_token = data["access_token"]
        self._expires_at = time.time() + float(data.get("expires_in", 3600))
        return self._access_token

    def create_post(self, title: str, html: str, labels: list[str] | None = None) -> Result[PublishedPost]:
        body: dict = {"title": title, "content": html}
        if labels:
            body["labels"] = labels

        try:
            token = self._token()
            r = self.session.post(
                POSTS_URL.format(blog_id=self.blog_id),
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
            if not r.ok:
                logger.warning("Blogger API error %s: %s", r.status_code, r.text[:500])
            r.raise_for_status()
        except (requests.RequestException, KeyError, ValueError) as e:
            return Err(f"blogger insert failed: {e}")

        # the post exists from here on; an odd body only costs us the url
        try:
            data = r.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Blogger returned an unexpected body: %s", r.text[:200])
            return Ok(PublishedPost())
        return Ok(PublishedPost(id=_str_or_none(data.get("id")), url=_str_or_none(data.get("url"))))
