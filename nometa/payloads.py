"""Pull serialized RSC payload chunks out of a rendered Next.js page.

Pages stream their server state as repeated ``self.__next_f.push([1,"..."])``
calls.  Each string literal is a JSON-escaped chunk; chunks may continue one
another, so callers join them in source order before searching.
"""

from __future__ import annotations

import re

__all__ = [
    "PUSH_RE",
    "extract_payloads",
    "join_payloads",
    "unescape_json_string",
    "unescape_payload",
]

# numeric tag, then one string literal whose escaped quotes are skipped over
PUSH_RE = re.compile(r'self\.__next_f\.push\(\[\d+,"((?:[^"\\]|\\.)*)"\]\)', re.S)
UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")


def _unescape_pass(raw: str) -> str:
    text = (
        raw.replace('\\"', '"')
        .replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\\\", "\\")
    )
    return UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def unescape_payload(raw: str, double_unescape: bool = True) -> str:
    """Decode one captured string literal.

    A second pass runs when escaped quotes survive the first one, which is how
    double-encoded chunks look.  Disable it when the result will itself be
    parsed as JSON and inner ``\\"`` escapes must stay intact.
    """
    text = _unescape_pass(raw)
    if double_unescape and '\\"' in text:
        text = _unescape_pass(text)
    return text


def extract_payloads(html: str, double_unescape: bool = True) -> list[str]:
    """Return every decoded payload in ``html`` in source order."""
    if not html:
        return []
    return [
        unescape_payload(m.group(1), double_unescape=double_unescape)
        for m in PUSH_RE.finditer(html)
    ]


def join_payloads(payloads: list[str]) -> str:
    return "\n".join(payloads)


def unescape_json_string(value: str) -> str:
    """Decode the common escapes of a JSON string body captured by a regex."""
    if not value:
        return ""
    return (
        value.replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace('\\"', '"')
        .replace("\\\\", "\\")
    )
