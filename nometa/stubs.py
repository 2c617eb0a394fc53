"""Recover article listings from RSC payloads.

``find_article_stubs`` is the entry point used by the web fetcher.  It first
parses every balanced JSON fragment in the joined payload text and walks the
result for objects carrying ``title`` and ``slug``; only when that finds
nothing do the regex fallbacks in :mod:`nometa.patterns` run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse

from .brackets import iter_json_fragments
from .patterns import extract_stubs_by_pattern, extract_stubs_from_arrays
from .payloads import join_payloads

__all__ = [
    "ArticleStub",
    "RecoveryContext",
    "SITE_BASE_URL",
    "extract_stubs_from_json",
    "find_article_stubs",
    "listing_base_path",
    "resolve_slug",
    "walk_for_articles",
]

SITE_BASE_URL = os.getenv("SITE_BASE_URL", "https://www.anthropic.com").rstrip("/")
DEFAULT_BASE_PATH = "/engineering"


@dataclass(frozen=True)
class ArticleStub:
    title: str
    slug: str
    published_on: str = ""
    summary: str = ""
    url: str = ""

    def as_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "slug": self.slug,
            "publishedOn": self.published_on,
            "summary": self.summary,
            "url": self.url,
        }


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def resolve_slug(value: Any) -> str:
    """Return the slug string from ``"x"`` or ``{"current": "x"}``."""
    if isinstance(value, dict):
        return _text(value.get("current"))
    return _text(value)


@dataclass
class RecoveryContext:
    """Per-call state shared by every extraction strategy.

    ``seen`` holds the slugs already emitted; the first occurrence wins.
    """

    url_prefix: str
    seen: set[str] = field(default_factory=set)
    articles: list[ArticleStub] = field(default_factory=list)

    def add(self, title: str, slug: str, published_on: str = "", summary: str = "") -> bool:
        if not slug or slug in self.seen:
            return False
        self.seen.add(slug)
        self.articles.append(
            ArticleStub(
                title=title,
                slug=slug,
                published_on=published_on,
                summary=summary,
                url=f"{self.url_prefix}/{slug}",
            )
        )
        return True

    def add_object(self, obj: dict) -> bool:
        """Record ``obj`` when it carries a string ``title`` and a ``slug``."""
        title = obj.get("title")
        if not title or not isinstance(title, str) or not obj.get("slug"):
            return False
        return self.add(
            title,
            resolve_slug(obj.get("slug")),
            _text(obj.get("publishedOn")) or _text(obj.get("date")),
            _text(obj.get("summary")) or _text(obj.get("description")),
        )


def walk_for_articles(value: Any, ctx: RecoveryContext) -> None:
    """Depth-first walk checking every object, matched or not."""
    if isinstance(value, list):
        for item in value:
            walk_for_articles(item, ctx)
        return
    if not isinstance(value, dict):
        return

    ctx.add_object(value)
    for child in value.values():
        if isinstance(child, (dict, list)):
            walk_for_articles(child, ctx)


def extract_stubs_from_json(text: str, ctx: RecoveryContext) -> None:
    for fragment in iter_json_fragments(text):
        try:
            walk_for_articles(fragment, ctx)
        except RecursionError:
            continue


def listing_base_path(feed_url: Optional[str]) -> str:
    """``https://host/engineering/`` -> ``/engineering``."""
    parsed = urlparse(feed_url or "")
    if not (parsed.scheme and parsed.netloc):
        return DEFAULT_BASE_PATH
    return parsed.path.rstrip("/")


def find_article_stubs(payloads: list[str], feed_url: str) -> list[ArticleStub]:
    """Return one stub per distinct slug found in ``payloads``."""
    ctx = RecoveryContext(url_prefix=f"{SITE_BASE_URL}{listing_base_path(feed_url)}")
    combined = join_payloads(payloads)
    if not combined:
        return []

    extract_stubs_from_json(combined, ctx)
    if not ctx.articles:
        extract_stubs_by_pattern(combined, ctx)
    if not ctx.articles:
        extract_stubs_from_arrays(combined, ctx)
    return ctx.articles
