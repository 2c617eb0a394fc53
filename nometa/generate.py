#!/usr/bin/env python3
"""Render published articles into static pages, an RSS feed and the sitemap.

Article records come from the storage layer (already translated); this module
only turns them into files under ``<root>/news`` plus ``<root>/sitemap.xml``.
"""

from __future__ import annotations

import argparse
import datetime as _dt
import json
import math
import os
import pathlib
import re
from email.utils import format_datetime, parsedate_to_datetime
from html import unescape
from typing import Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .render import escape_html
from .utils import env_int

PACKAGE_ROOT = pathlib.Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_ROOT / "templates"
ROOT = PACKAGE_ROOT.parent

SITE_URL = os.getenv("SITE_URL", "https://nometa.az").rstrip("/")
NEWS_DIR = pathlib.Path(os.getenv("NEWS_DIR") or (ROOT / "news"))
RSS_MAX_ITEMS = env_int("RSS_MAX_ITEMS", 20)
WORDS_PER_MINUTE = 200

AZ_MONTHS = (
    "Yanvar", "Fevral", "Mart", "Aprel", "May", "İyun",
    "İyul", "Avqust", "Sentyabr", "Oktyabr", "Noyabr", "Dekabr",
)

PROVIDER_NAMES = {
    "claude-api": "Claude AI",
    "claude-cli": "Claude AI",
    "openai": "OpenAI GPT-4",
}


def parse_date(value: Any) -> Optional[_dt.datetime]:
    """Parse ISO 8601 (with ``Z``), RFC 822 or ``YYYY-MM-DD`` into naive UTC."""
    if isinstance(value, _dt.datetime):
        dt = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = _dt.datetime.fromisoformat(text)
        except ValueError:
            try:
                dt = parsedate_to_datetime(str(value))
            except (TypeError, ValueError):
                return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(_dt.timezone.utc).replace(tzinfo=None)
    return dt


def format_date(value: Any) -> str:
    """``2025-03-05`` -> ``5 Mart 2025``."""
    dt = parse_date(value)
    if dt is None:
        return ""
    return f"{dt.day} {AZ_MONTHS[dt.month - 1]} {dt.year}"


def format_date_iso(value: Any) -> str:
    dt = parse_date(value)
    return dt.date().isoformat() if dt else ""


def format_rfc822(value: Any) -> str:
    dt = parse_date(value)
    if dt is None:
        return ""
    return format_datetime(dt.replace(tzinfo=_dt.timezone.utc), usegmt=True)


def plain_text(content: str, max_length: int = 500) -> str:
    text = re.sub(r"<[^>]+>", " ", str(content or ""))
    text = unescape(text)
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"[#*_`\[\]]", "", text).strip()
    if len(text) <= max_length:
        return text
    return re.sub(r"\s+\S*$", "", text[:max_length]) + "..."


def reading_time(content: str) -> tuple[int, int]:
    """Return ``(word_count, minutes)``; at least one minute."""
    words = len(plain_text(content, max_length=len(content or "")).split())
    return words, max(1, math.ceil(words / WORDS_PER_MINUTE))


def paragraphs_to_html(markdown: str) -> str:
    """Minimal Markdown body: blank-line separated paragraphs, ``#`` headings."""
    parts = []
    for chunk in re.split(r"\n{2,}", (markdown or "").strip()):
        chunk = chunk.strip()
        if not chunk:
            continue
        m = re.match(r"^(#{1,4})\s+(.*)$", chunk, re.S)
        if m:
            level = len(m.group(1))
            parts.append(f"<h{level}>{escape_html(m.group(2))}</h{level}>")
        else:
            parts.append(f"<p>{escape_html(chunk)}</p>")
    return "\n".join(parts)


def remove_leading_h1(html: str) -> str:
    """Drop a leading ``<h1>``; the page template already shows the title."""
    return re.sub(r"^\s*<h1[^>]*>.*?</h1>\s*", "", html or "", count=1, flags=re.I | re.S)


def make_env(templates_dir: pathlib.Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["az_date"] = format_date
    env.filters["iso_date"] = format_date_iso
    env.filters["rfc822"] = format_rfc822
    env.filters["plain_text"] = plain_text
    return env


def article_context(article: dict) -> dict:
    content = article.get("content") or ""
    body = article.get("htmlContent") or paragraphs_to_html(content)
    words, minutes = reading_time(content)
    published = article.get("publishedDate") or ""
    return {
        "title": article.get("title") or "",
        "description": article.get("description") or plain_text(content, 160),
        "slug": article.get("slug") or "",
        "content": Markup(remove_leading_h1(body)),
        "source": article.get("source") or "",
        "source_url": article.get("sourceUrl") or "",
        "original_url": article.get("originalUrl") or "",
        "published": published,
        "modified": article.get("translatedAt") or published,
        "provider": PROVIDER_NAMES.get(article.get("translationProvider") or "", "AI"),
        "word_count": words,
        "reading_time": minutes,
        "url": f"{SITE_URL}/news/{article.get('slug') or ''}/",
    }


def render_article_page(article: dict, env: Optional[Environment] = None) -> str:
    env = env or make_env()
    return env.get_template("article.html").render(article=article_context(article), site_url=SITE_URL)


def render_index_page(articles: Iterable[dict], env: Optional[Environment] = None) -> str:
    env = env or make_env()
    return env.get_template("index.html").render(
        articles=[article_context(a) for a in articles], site_url=SITE_URL
    )


def render_rss_feed(
    articles: Iterable[dict],
    env: Optional[Environment] = None,
    build_date: Optional[_dt.datetime] = None,
) -> str:
    env = env or make_env()
    items = [article_context(a) for a in list(articles)[:RSS_MAX_ITEMS]]
    build_date = build_date or _dt.datetime.now(_dt.timezone.utc)
    return env.get_template("feed.xml").render(
        articles=items, site_url=SITE_URL, build_date=format_rfc822(build_date)
    ).strip()


def render_sitemap(
    articles: Iterable[dict],
    env: Optional[Environment] = None,
    today: Optional[_dt.date] = None,
) -> str:
    env = env or make_env()
    today = today or _dt.datetime.now(_dt.timezone.utc).date()
    return env.get_template("sitemap.xml").render(
        articles=[article_context(a) for a in articles],
        site_url=SITE_URL,
        today=today.isoformat(),
    ).strip()


def _write(path: pathlib.Path, text: str) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def generate_site(articles: list[dict], news_dir: Optional[pathlib.Path] = None) -> dict:
    """Write every page for ``articles``; ``sitemap.xml`` lands next to ``news_dir``."""
    news_dir = pathlib.Path(news_dir or NEWS_DIR)
    env = make_env()

    print(f"Found {len(articles)} articles to publish")
    publishable = []
    for article in articles:
        if not article.get("slug"):
            print(f"[WARN] Skipping article without slug: {article.get('title')!r}")
            continue
        publishable.append(article)

    for article in publishable:
        print(f"  Generating: {article['slug']}/")
        _write(news_dir / article["slug"] / "index.html", render_article_page(article, env))

    _write(news_dir / "index.html", render_index_page(publishable, env))
    _write(news_dir / "feed.xml", render_rss_feed(publishable, env))
    _write(news_dir.parent / "sitemap.xml", render_sitemap(publishable, env))
    print("Blog generation complete!")
    return {"articles_generated": len(publishable), "output_dir": str(news_dir)}


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Generate static blog pages from article JSON.")
    parser.add_argument("articles", type=pathlib.Path, help="JSON file with published articles")
    parser.add_argument("--out", type=pathlib.Path, default=NEWS_DIR, help="news/ output directory")
    args = parser.parse_args(argv)

    articles = json.loads(args.articles.read_text(encoding="utf-8"))
    if not isinstance(articles, list):
        raise SystemExit(f"Expected an array in {args.articles}")
    generate_site(articles, args.out)


if __name__ == "__main__":
    main()
