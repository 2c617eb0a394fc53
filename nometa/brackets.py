"""String-aware bracket matching over serialized payload text.

Payload text mixes JSON with framework noise, so fragments are located by
scanning for a balanced ``{...}`` / ``[...]`` region first and only then handed
to :mod:`json`.  Brackets inside quoted strings (including escaped quotes) never
affect the depth.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional

__all__ = ["MAX_SCAN", "find_matching_bracket", "iter_json_fragments"]

# Lookahead cap for a single fragment; keeps pathological input linear-ish.
MAX_SCAN = 100_000

OPENERS = "{["
CLOSERS = "}]"

_NORMAL = 0
_IN_STRING = 1
_ESCAPED = 2


def find_matching_bracket(text: str, start: int, limit: Optional[int] = MAX_SCAN) -> int:
    """Return the index just past the bracket closing ``text[start]``.

    ``text[start]`` must be ``{`` or ``[``.  Returns ``-1`` when the region is
    unbalanced or extends beyond ``limit`` characters (``None`` disables the
    cap).
    """
    if start < 0 or start >= len(text) or text[start] not in OPENERS:
        return -1

    stop = len(text) if limit is None else min(len(text), start + limit)
    state = _NORMAL
    depth = 0
    for i in range(start, stop):
        ch = text[i]
        if state == _ESCAPED:
            state = _IN_STRING
        elif state == _IN_STRING:
            if ch == "\\":
                state = _ESCAPED
            elif ch == '"':
                state = _NORMAL
        elif ch == '"':
            state = _IN_STRING
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
            if depth == 0:
                return i + 1
            if depth < 0:
                return -1
    return -1


def iter_json_fragments(
    text: str,
    openers: str = OPENERS,
    limit: Optional[int] = MAX_SCAN,
    skip_nested: bool = True,
) -> Iterator[Any]:
    """Yield every JSON value parseable from a balanced region of ``text``.

    Candidate starts are visited left to right.  A start lying inside a region
    that already parsed is skipped (unless ``skip_nested`` is false), so nested
    values are produced once as part of their parent.  Regions that fail to
    parse are dropped silently.
    """
    covered_until = 0
    for start, ch in enumerate(text):
        if ch not in openers or start < covered_until:
            continue
        end = find_matching_bracket(text, start, limit)
        if end == -1:
            continue
        try:
            value = json.loads(text[start:end])
        except (ValueError, RecursionError):
            continue
        if skip_nested:
            covered_until = end
        yield value
