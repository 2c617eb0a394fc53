"""NoMeta.az content pipeline: RSC page scraping, body rendering and static feeds."""

from .blocks import extract_body_blocks
from .metadata import extract_single_article_metadata
from .payloads import extract_payloads
from .render import render_blocks_to_html, render_blocks_to_markdown
from .stubs import ArticleStub, find_article_stubs

__all__ = [
    "ArticleStub",
    "extract_body_blocks",
    "extract_payloads",
    "extract_single_article_metadata",
    "find_article_stubs",
    "render_blocks_to_html",
    "render_blocks_to_markdown",
]
