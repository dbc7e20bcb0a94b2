from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    pattern: re.Pattern

    def apply(self, html: str) -> str | None:
        m = self.pattern.search(html)
        return m.group(1) if m else None


def _rule(name: str, regex: str) -> ExtractionRule:
    return ExtractionRule(name, re.compile(regex, re.IGNORECASE | re.DOTALL))


# Tried in order; the last one is the generic fallback.
DEFAULT_RULES: list[ExtractionRule] = [
    _rule("gsmarena", r'<div class="article-body">(.*?)</div>'),
    _rule("engadget", r'<div[^>]*class=["\']o-article-blocks["\'][^>]*>(.*?)</div>'),
    _rule("article-content", r'<div[^>]*class=["\']article-content["\'][^>]*>(.*?)</div>'),
    _rule("generic-article", r"<article[^>]*>(.*?)</article>"),
]

_IMG_SRC_RE = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)
_OG_IMAGE_RES = [
    re.compile(r'property=["\']og:image["\']\s*content=["\']([^"\']+)["\']', re.IGNORECASE),
    re.compile(r'<meta[^>]*name=["\']og:image["\'][^>]*content=["\']([^"\']+)["\']', re.IGNORECASE),
    re.compile(r'<meta[^>]*content=["\']([^"\']+)["\'][^>]*property=["\']og:image["\']', re.IGNORECASE),
]
_IMG_TAG_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_NEWLINES_RE = re.compile(r"[\r\n]+")


@dataclass
class ExtractedArticle:
    content: str = ""
    image_url: str | None = None


def extract_main_article(html: str | None, rules: list[ExtractionRule] = DEFAULT_RULES) -> str | None:
    if not html:
        return None
    for rule in rules:
        body = rule.apply(html)
        if body is not None:
            return body
    return None


def extract_og_image(html: str | None) -> str | None:
    if not html:
        return None
    for rx in _OG_IMAGE_RES:
        m = rx.search(html)
        if m:
            return m.group(1)
    return None


def extract_first_image(html: str | None) -> str | None:
    if not html:
        return None
    m = _IMG_SRC_RE.search(html)
    return m.group(1) if m else None


def clean_body(body: str) -> str:
    # the lead image is re-added by the post template
    body = _IMG_TAG_RE.sub("", body)
    return _NEWLINES_RE.sub(" ", body)


def extract_article(html: str | None, rules: list[ExtractionRule] = DEFAULT_RULES) -> ExtractedArticle:
    """
    Main body + representative image of a page. Never raises; missing
    pieces come back empty.
    """
    body = extract_main_article(html, rules) or ""
    image = extract_og_image(html) or extract_first_image(html)
    if body:
        body = clean_body(body)
    return ExtractedArticle(content=body, image_url=image)
