#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
NoMeta.az – web page fetcher

Scrapes article listings and bodies from Next.js pages backed by the Sanity
CMS (Anthropic engineering / research) where no RSS feed exists.

• Listing pages → pending article records (title, summary, date, URL) via the
  RSC payload parser in ``nometa.stubs``.
• Article pages → Markdown + HTML body via ``nometa.blocks`` / ``nometa.render``;
  pages without body blocks fall back to trafilatura → readability → tag strip.
• Single URL import for the admin "add by URL" action.

Run:
  python -m nometa.fetch_web https://www.anthropic.com/engineering
  python -m nometa.fetch_web --article https://www.anthropic.com/engineering/some-post
Env knobs (optional):
  HTTP_TIMEOUT, NOMETA_USER_AGENT, SITE_BASE_URL, TEXT_FALLBACK_CHARS, HEALTH_DIR
"""

from __future__ import annotations

import argparse
import json
import re
import socket
import time
import urllib.error
import uuid
from typing import Optional
from urllib.parse import urlparse

import trafilatura
from readability import Document

from .health import HealthReport
from .metadata import extract_single_article_metadata
from .blocks import extract_body_blocks
from .payloads import extract_payloads, join_payloads
from .render import render_blocks_to_html, render_blocks_to_markdown
from .stubs import ArticleStub, find_article_stubs
from .utils import env_int, generate_slug, http_get, strip_text, utc_now_iso

TEXT_FALLBACK_CHARS = env_int("TEXT_FALLBACK_CHARS", 5000)
FULL_MARKDOWN_MIN = 200
FULL_TEXT_MIN = 500
FILTER_SCAN_CHARS = 500

# Platform/promotional content that never gets translated
FILTER_KEYWORDS = [
    # Product announcements & releases
    "release notes", "changelog", "new feature", "now available", "announcing",
    "introducing", "launch", "beta", "preview", "ga release", "generally available",
    # Platform specific
    "gitlab ci", "gitlab runner", "gitlab premium", "gitlab ultimate",
    "pricing", "subscription", "upgrade", "migration guide",
    # Corporate/promotional
    "webinar", "conference", "event", "meetup", "workshop",
    "case study", "customer story", "partnership", "acquisition",
    "careers", "hiring", "job", "join our team",
    # Meta content
    "year in review", "annual report", "survey results",
]

NETWORK_ERRORS = (urllib.error.URLError, socket.timeout, ConnectionError)


def should_filter_article(article: dict) -> Optional[str]:
    """Return the reason ``article`` is dropped, or ``None`` to keep it.

    Web listings only carry summaries, so there is no minimum length here.
    """
    title = (article.get("title") or "").lower()
    content = (article.get("content") or "").lower()[:FILTER_SCAN_CHARS]
    combined = f"{title} {content}"
    for keyword in FILTER_KEYWORDS:
        if keyword in combined:
            return f'Contains "{keyword}"'
    return None


def _article_id(prefix: str) -> str:
    name = re.sub(r"\s+", "-", prefix.lower())
    return f"{name}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def stub_to_article(stub: ArticleStub, feed: dict) -> dict:
    title = stub.title or "Untitled"
    now = utc_now_iso()
    return {
        "id": _article_id(feed.get("name") or "web"),
        "title": title,
        "originalUrl": stub.url,
        "source": feed.get("name") or "",
        "sourceUrl": feed.get("sourceUrl") or "",
        "publishedDate": stub.published_on or now,
        "description": stub.summary,
        "content": stub.summary,
        "slug": generate_slug(title),
        "status": "pending",
        "fetchedAt": now,
        "translatedAt": None,
        "publishedAt": None,
        "translationProvider": None,
    }


def fetch_web_feed(feed: dict, health: Optional[HealthReport] = None) -> tuple[list[dict], Optional[str]]:
    """Fetch one listing page; returns ``(articles, error)``."""
    url = feed.get("url") or ""
    name = feed.get("name") or url
    try:
        html = http_get(url)
    except NETWORK_ERRORS + (ValueError,) as e:
        print("Fetch error:", url, "->", e)
        if health is not None:
            health.record_error(f"{name}: {e}")
        return [], str(e)

    payloads = extract_payloads(html)
    if not payloads:
        print(f"[WARN] No RSC payloads found: {name}")
        return [], "No RSC payloads found on page"

    articles = []
    filtered = 0
    for stub in find_article_stubs(payloads, url):
        article = stub_to_article(stub, feed)
        reason = should_filter_article(article)
        if reason:
            print(f"[SKIP] {article['title']} -> {reason}")
            filtered += 1
            continue
        articles.append(article)

    if health is not None:
        health.record_source(len(articles), filtered)
    print(f"Web feed fetched: {name} found={len(articles)} filtered={filtered}")
    return articles, None


def extract_text_from_html(html: str) -> str:
    """Readable text for pages without structured data (trafilatura → readability → strip)."""
    if not html:
        return ""
    text = ""
    try:
        text = trafilatura.extract(html, include_comments=False, include_tables=False) or ""
    except Exception as e:
        print("trafilatura error:", e)
    if not text:
        try:
            text = strip_text(Document(html).summary(html_partial=True))
        except Exception as e:
            print("readability error:", e)
    if not text:
        text = strip_text(html)
    text = re.sub(r"\s+", " ", text).strip()
    return text[:TEXT_FALLBACK_CHARS]


def fetch_article_content(url: str) -> dict:
    """Fetch the full body of one article page.

    Network errors propagate; a page without payloads yields empty content.
    """
    html = http_get(url)
    # single pass: the body array must keep its inner \" escapes to parse
    payloads = extract_payloads(html, double_unescape=False)
    if not payloads:
        return {"content": "", "html_content": "", "has_full_content": False}

    blocks = extract_body_blocks(join_payloads(payloads))
    if blocks:
        markdown = render_blocks_to_markdown(blocks)
        return {
            "content": markdown,
            "html_content": render_blocks_to_html(blocks),
            "has_full_content": len(markdown) > FULL_MARKDOWN_MIN,
        }

    text = extract_text_from_html(html)
    return {"content": text, "html_content": "", "has_full_content": len(text) > FULL_TEXT_MIN}


TITLE_TAG_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.I)
SITE_SUFFIX_RE = re.compile(r"\s*[|\-–—\\]\s*.*$")
META_DESC_RES = (
    re.compile(r"""<meta\s+name=["']description["']\s+content=["']([^"']+)["']""", re.I),
    re.compile(r"""<meta\s+content=["']([^"']+)["']\s+name=["']description["']""", re.I),
)


def import_article_from_url(url: str) -> dict:
    """Build a pending article record for an arbitrary article URL.

    Raises ``ValueError`` when no title can be found.
    """
    html = http_get(url)
    parsed = urlparse(url)
    hostname = re.sub(r"^www\.", "", parsed.hostname or "")
    label = hostname.split(".")[0]
    source = label[:1].upper() + label[1:]

    title = ""
    description = ""
    published = utc_now_iso()

    if "anthropic.com" in hostname:
        meta = extract_single_article_metadata(join_payloads(extract_payloads(html)))
        title = meta.title
        description = meta.summary
        published = meta.published_on or published

    if not title:
        m = TITLE_TAG_RE.search(html)
        if m:
            title = SITE_SUFFIX_RE.sub("", m.group(1).strip())

    if not description:
        for pattern in META_DESC_RES:
            m = pattern.search(html)
            if m:
                description = m.group(1).strip()
                break

    if not title:
        raise ValueError("Could not extract article title from page")

    now = utc_now_iso()
    return {
        "id": _article_id("import"),
        "title": title,
        "originalUrl": url,
        "source": source,
        "sourceUrl": f"{parsed.scheme}://{parsed.hostname}",
        "publishedDate": published,
        "description": description,
        "content": description,
        "slug": generate_slug(title),
        "status": "pending",
        "fetchedAt": now,
        "translatedAt": None,
        "publishedAt": None,
        "translationProvider": None,
    }


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch articles from RSC-rendered pages.")
    parser.add_argument("url", nargs="?", help="Listing page URL")
    parser.add_argument("--name", default="Anthropic", help="Source name for the records")
    parser.add_argument("--article", help="Fetch one article body and print its Markdown")
    parser.add_argument("--json", action="store_true", help="Print records as JSON")
    args = parser.parse_args(argv)

    if args.article:
        result = fetch_article_content(args.article)
        print(result["content"])
        return 0 if result["content"] else 1

    if not args.url:
        parser.error("a listing URL or --article is required")

    health = HealthReport("fetch-web")
    feed = {"name": args.name, "url": args.url, "sourceUrl": args.url}
    articles, error = fetch_web_feed(feed, health=health)
    if error:
        health.record_error(f"{args.name}: {error}")

    if args.json:
        print(json.dumps(articles, ensure_ascii=False, indent=2))
    else:
        for article in articles:
            print(f"{article['publishedDate']}  {article['title']}  {article['originalUrl']}")

    try:
        health.write()
    except OSError as health_exc:
        print(f"[WARN] Failed to write fetch health: {health_exc}")
    return 1 if health.has_errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
