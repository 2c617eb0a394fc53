"""Heartbeat files describing the last web fetch run."""

from __future__ import annotations

import datetime as _dt
import json
import os
import pathlib
from typing import Sequence

ROOT = pathlib.Path(__file__).resolve().parent.parent
HEALTH_DIR = pathlib.Path(os.getenv("HEALTH_DIR") or (ROOT / "_health"))

__all__ = ["HealthReport", "HEALTH_DIR"]


def _utc_now_iso() -> str:
    """Return a second-precision UTC timestamp with a ``Z`` suffix."""

    now = _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None, microsecond=0)
    return now.isoformat() + "Z"


def _dedupe_errors(messages: Sequence[str], *, limit: int = 20) -> list[str]:
    """Clean and deduplicate error strings while preserving order."""

    seen: set[str] = set()
    cleaned: list[str] = []
    for raw in messages:
        text = str(raw or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        cleaned.append(text)
        if len(cleaned) >= limit:
            break
    return cleaned


def _non_negative(value) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class HealthReport:
    """Collect per-source fetch errors and counts for one run.

    ``write`` persists them to ``_health/<name>.json`` so the admin UI and CI can
    tell a quiet run from a broken one.
    """

    def __init__(self, name: str, *, health_dir: pathlib.Path | None = None) -> None:
        self.name = name
        self.health_dir = health_dir or HEALTH_DIR
        self.errors: list[str] = []
        self.sources_count = 0
        self.articles_found = 0
        self.articles_filtered = 0

    def record_error(self, message: str) -> None:
        text = str(message or "").strip()
        if text:
            self.errors.append(text)

    def record_source(self, found: int, filtered: int = 0) -> None:
        self.sources_count += 1
        self.articles_found += _non_negative(found)
        self.articles_filtered += _non_negative(filtered)

    @property
    def has_errors(self) -> bool:
        return bool(_dedupe_errors(self.errors))

    def as_dict(self) -> dict:
        return {
            "last_fetch": _utc_now_iso(),
            "sources_count": self.sources_count,
            "articles_found": self.articles_found,
            "articles_filtered": self.articles_filtered,
            "errors": _dedupe_errors(self.errors),
        }

    def write(self) -> pathlib.Path:
        path = self.health_dir / f"{self.name}.json"
        self.health_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(self.as_dict(), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
        return path
