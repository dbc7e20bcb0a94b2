from __future__ import annotations

import logging
import re

from openai import OpenAI, OpenAIError

from feed2blog.models.results import Err, Ok, Result

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:html)?\s*|\s*```\s*$", re.IGNORECASE)
_ANCHOR_RE = re.compile(r"<a\b[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)

REWRITE_SYSTEM = """You rewrite tech news articles into original, SEO-friendly English blog posts.
Rules:
- Keep every fact from the source and add none.
- Keep roughly the source length.
- Use <h2>/<h3> subheadings, <p>, <strong>, <ul>/<ol>. Do not write an <h1>; the blog adds the title.
- No links and no <a> tags.
- No remarks before or after the article.
Return ONLY the HTML for the article body.
"""

ALT_PROMPT = "Write a descriptive image alt text (5-10 words) with relevant keywords for the lead image of this article. Return only the alt text."
CAPTION_PROMPT = "Write a short keyword-focused image title (3-6 words) for the lead image of this article. Return only the title."
TAGS_PROMPT = "Write 3-6 SEO-friendly tags for this article. Return them as comma-separated keywords only."


def clean_rewrite(text: str) -> str:
    """Strip code fences and unwrap every link to its text."""
    text = _FENCE_RE.sub("", text)
    return _ANCHOR_RE.sub(r"\1", text).strip()


def parse_tags(raw: str, max_tags: int = 6) -> list[str]:
    tags: list[str] = []
    for t in raw.split(","):
        t = t.strip().strip("#").strip()
        if t and t not in tags:
            tags.append(t)
    return tags[:max_tags]


def _article_prompt(title: str, snippet: str | None, content: str | None) -> str:
    return f"""TITLE: {title}

SNIPPET: {snippet or ""}

CONTENT:
{content or ""}
"""


class Rewriter:
    """
    OpenAI chat-completions client for the rewrite and the small metadata
    calls. Every method returns Ok/Err, never raises on API failures.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 1500,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key)

    def _complete(self, messages: list[dict], max_tokens: int) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
        )
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()

    def rewrite(self, title: str, snippet: str | None, content: str | None) -> Result[str]:
        try:
            text = self._complete(
                [
                    {"role": "system", "content": REWRITE_SYSTEM},
                    {"role": "user", "content": _article_prompt(title, snippet, content)},
                ],
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.warning("OpenAI rewrite error: %s", e)
            return Err(f"rewrite failed: {e}")

        html = clean_rewrite(text)
        if not html:
            return Err("rewrite returned empty content")
        return Ok(html)

    def _short(self, instruction: str, title: str, snippet: str | None, content: str | None, max_tokens: int) -> Result[str]:
        try:
            text = self._complete(
                [{"role": "user", "content": f"{instruction}\n\n{_article_prompt(title, snippet, content)}"}],
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            return Err(str(e))
        if not text:
            return Err("empty response")
        return Ok(text.strip('"').strip())

    def image_alt(self, title: str, snippet: str | None, content: str | None) -> Result[str]:
        return self._short(ALT_PROMPT, title, snippet, content, max_tokens=40)

    def image_caption(self, title: str, snippet: str | None, content: str | None) -> Result[str]:
        return self._short(CAPTION_PROMPT, title, snippet, content, max_tokens=20)

    def tags(self, title: str, snippet: str | None, content: str | None) -> Result[list[str]]:
        res = self._short(TAGS_PROMPT, title, snippet, content, max_tokens=40)
        if isinstance(res, Err):
            return res
        return Ok(parse_tags(res.value))
