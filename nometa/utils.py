"""Shared helpers: environment knobs, HTTP fetch, text cleanup and slugs."""

from __future__ import annotations

import datetime as _dt
import os
import re
import urllib.request
from html import unescape


def env_int(name: str, default: int) -> int:
    """Return an integer from the environment or ``default`` on failure."""

    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"[WARN] Invalid {name}={raw!r}; falling back to {default}")
        return default


HTTP_TIMEOUT = env_int("HTTP_TIMEOUT", 15)
UA = os.getenv("NOMETA_USER_AGENT", "NoMeta.az Blog Fetcher/1.0")


def http_get(url: str, timeout: int | None = None) -> str:
    """GET ``url`` and return the decoded body.

    Non-2xx responses surface as ``urllib.error.HTTPError``; the socket timeout
    bounds the whole request.
    """
    req = urllib.request.Request(url, headers={"User-Agent": UA})
    with urllib.request.urlopen(req, timeout=timeout or HTTP_TIMEOUT) as r:
        raw = r.read()
    for enc in ("utf-8", "utf-16"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", "ignore")


def strip_text(s: str) -> str:
    s = unescape(s or "")
    s = re.sub(r"(?is)<script.*?</script>|<style.*?</style>|<!--.*?-->", " ", s)
    s = re.sub(r"<[^>]+>", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def generate_slug(title: str, max_length: int = 80) -> str:
    """Build a URL slug: ``"Hello, World!"`` -> ``"hello-world"``."""
    s = (title or "").lower()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-+", "-", s)
    s = s[:max_length]
    return re.sub(r"-$", "", s)


def utc_now_iso() -> str:
    """Return a millisecond-precision UTC timestamp with a ``Z`` suffix."""

    now = _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"
