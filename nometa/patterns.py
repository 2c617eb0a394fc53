"""Fallbacks for listing pages whose payloads do not parse as JSON.

One malformed field far away from the article data is enough to make every
enclosing fragment unparseable, so the regex strategies read the key sequences
directly and the array strategy parses bracket-matched arrays on their own.
They share the caller's recovery context and its seen-slug set.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .brackets import iter_json_fragments
from .payloads import unescape_json_string

if TYPE_CHECKING:
    from .stubs import RecoveryContext

__all__ = ["extract_stubs_by_pattern", "extract_stubs_from_arrays"]

_STR = r'"((?:[^"\\]|\\.)+)"'
_TITLE = r'"title"\s*:\s*' + _STR.replace("(", "(?P<title>", 1)
_SLUG = (
    r'"slug"\s*:\s*(?:\{\s*"current"\s*:\s*"(?P<slug_current>[^"]+)"\s*\}'
    r'|"(?P<slug>[^"]+)")'
)
_PUBLISHED = r'"publishedOn"\s*:\s*"(?P<published>[^"]+)"'
_SUMMARY = r'(?:[^}]*?"summary"\s*:\s*"(?P<summary>(?:[^"\\]|\\.)*)")?'

TITLE_FIRST_RE = re.compile(_TITLE + r"[^}]*?" + _SLUG + r"[^}]*?" + _PUBLISHED + _SUMMARY)
SLUG_FIRST_RE = re.compile(_SLUG + r"[^}]*?" + _TITLE + r"[^}]*?" + _PUBLISHED + _SUMMARY)


def extract_stubs_by_pattern(text: str, ctx: RecoveryContext) -> None:
    """Title-before-slug matches first, then slug-before-title."""
    for pattern in (TITLE_FIRST_RE, SLUG_FIRST_RE):
        for m in pattern.finditer(text):
            ctx.add(
                unescape_json_string(m.group("title")),
                m.group("slug_current") or m.group("slug") or "",
                m.group("published"),
                unescape_json_string(m.group("summary") or ""),
            )


def extract_stubs_from_arrays(text: str, ctx: RecoveryContext) -> None:
    """Parse every balanced array, nested ones included, for article objects."""
    for parsed in iter_json_fragments(text, openers="[", skip_nested=False):
        if not isinstance(parsed, list):
            continue
        for item in parsed:
            if isinstance(item, dict):
                ctx.add_object(item)
