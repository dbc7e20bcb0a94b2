from datetime import datetime

from pydantic import BaseModel


class FeedEntry(BaseModel):
    guid: str
    link: str
    title: str = "Untitled"
    snippet: str | None = None
    content: str | None = None
    published_at: datetime | None = None


class PublishedPost(BaseModel):
    id: str | None = None
    url: str | None = None

    @property
    def ref(self) -> str:
        return self.url or self.id or "(no url returned)"
