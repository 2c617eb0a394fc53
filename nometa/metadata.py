"""Metadata for a single article page.

Article pages embed one CMS document whose serialized body can run past 100K
characters and rarely survives a full JSON parse.  The CMS writes fields in
alphabetical order, so ``body`` comes before ``publishedOn``, ``slug``,
``summary`` and ``title``.  ``publishedOn`` never occurs inside body text,
which makes it the anchor: ``summary`` and ``title`` are looked up only in a
small window around it.  If the CMS ever changes its field order the anchor
stops matching and the wider fallback window takes over.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Iterable

from .brackets import iter_json_fragments

__all__ = [
    "ANCHOR_FIELD",
    "ARTICLE_TYPES",
    "ArticleMetadata",
    "extract_single_article_metadata",
    "is_plausible_title",
]

ARTICLE_TYPES = ("engineeringArticle", "post", "researchArticle")
ANCHOR_FIELD = "publishedOn"
ANCHOR_WINDOW_BEFORE = 500
ANCHOR_WINDOW_AFTER = 5000
WIDE_WINDOW = 50_000
MIN_TITLE_LENGTH = 5

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{3,8}$")
TITLE_RE = re.compile(r'"title"\s*:\s*"([^"]+)"')
SUMMARY_RE = re.compile(r'"summary"\s*:\s*"([^"]+)"')


@dataclass
class ArticleMetadata:
    title: str = ""
    summary: str = ""
    published_on: str = ""

    def as_dict(self) -> dict[str, str]:
        data = asdict(self)
        data["publishedOn"] = data.pop("published_on")
        return data


def is_plausible_title(value: str) -> bool:
    """Palette swatches (``#fff``) and short labels are not titles."""
    return not HEX_COLOR_RE.match(value) and len(value) >= MIN_TITLE_LENGTH


def _first_title(window: str) -> str:
    for m in TITLE_RE.finditer(window):
        if is_plausible_title(m.group(1)):
            return m.group(1)
    return ""


def _first_summary(window: str) -> str:
    m = SUMMARY_RE.search(window)
    return m.group(1) if m else ""


def _from_type_marker(
    text: str, result: ArticleMetadata, article_type: str, anchor_re: re.Pattern
) -> None:
    marker = re.search(r'"_type"\s*:\s*"' + re.escape(article_type) + '"', text)
    if marker is None:
        return
    after = text[marker.start():]

    anchor = anchor_re.search(after)
    if anchor is not None:
        result.published_on = anchor.group(1)
        pos = anchor.start()
        cluster = after[max(0, pos - ANCHOR_WINDOW_BEFORE):pos + ANCHOR_WINDOW_AFTER]
        result.summary = _first_summary(cluster) or result.summary
        result.title = _first_title(cluster)

    if not result.title:
        window = after[:WIDE_WINDOW]
        if not result.summary:
            result.summary = _first_summary(window)
        result.title = _first_title(window)


def _from_standalone_objects(
    text: str, result: ArticleMetadata, article_types: Iterable[str], anchor_field: str
) -> None:
    types = set(article_types)
    for obj in iter_json_fragments(text, openers="{", skip_nested=False):
        if not isinstance(obj, dict):
            continue
        title = obj.get("title")
        type_name = obj.get("_type")
        if not title or not isinstance(title, str):
            continue
        if not isinstance(type_name, str) or type_name not in types:
            continue
        result.title = title
        if isinstance(obj.get("summary"), str) and obj["summary"]:
            result.summary = obj["summary"]
        if isinstance(obj.get(anchor_field), str) and obj[anchor_field]:
            result.published_on = obj[anchor_field]
        return


def extract_single_article_metadata(
    text: str,
    article_types: Iterable[str] = ARTICLE_TYPES,
    anchor_field: str = ANCHOR_FIELD,
) -> ArticleMetadata:
    """Return ``title``, ``summary`` and ``publishedOn`` for one article page.

    Missing fields stay empty strings; nothing here raises on odd input.
    """
    result = ArticleMetadata()
    if not text:
        return result

    article_types = tuple(article_types)
    anchor_re = re.compile('"' + re.escape(anchor_field) + r'"\s*:\s*"([^"]+)"')
    for article_type in article_types:
        _from_type_marker(text, result, article_type, anchor_re)
        if result.title:
            break

    if not result.title:
        _from_standalone_objects(text, result, article_types, anchor_field)
    return result
