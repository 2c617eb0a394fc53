"""Portable-text body blocks: typed model plus the body-array finder.

The CMS serializes an article body as a JSON array of ``_type``-tagged
objects.  ``parse_blocks`` turns that array into the small set of frozen
dataclasses below; anything with an unrecognised tag becomes an
``UnknownBlock`` that renders to nothing.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from .brackets import find_matching_bracket

__all__ = [
    "Block",
    "CodeBlock",
    "ImageBlock",
    "MarkDef",
    "Span",
    "TableBlock",
    "TableCell",
    "TextBlock",
    "UnknownBlock",
    "extract_body_blocks",
    "parse_block",
    "parse_blocks",
]

BODY_RE = re.compile(r'"body"\s*:\s*\[')


@dataclass(frozen=True)
class Span:
    text: str
    marks: tuple[str, ...] = ()


@dataclass(frozen=True)
class MarkDef:
    key: str
    type: str
    href: str = ""


@dataclass(frozen=True)
class TextBlock:
    """Paragraph, heading, blockquote or list item (``list_item`` set)."""

    children: tuple[Span, ...] = ()
    style: str = "normal"
    mark_defs: tuple[MarkDef, ...] = ()
    list_item: str = ""

    def find_mark_def(self, key: str) -> Optional[MarkDef]:
        for mark_def in self.mark_defs:
            if mark_def.key == key:
                return mark_def
        return None


@dataclass(frozen=True)
class CodeBlock:
    code: str = ""
    language: str = ""


@dataclass(frozen=True)
class ImageBlock:
    url: str = ""
    asset_ref: str = ""
    alt: str = ""
    caption: tuple[TextBlock, ...] = ()


@dataclass(frozen=True)
class TableCell:
    blocks: tuple[TextBlock, ...] = ()
    separator: str = " "


@dataclass(frozen=True)
class TableBlock:
    rows: tuple[tuple[TableCell, ...], ...] = ()


@dataclass(frozen=True)
class UnknownBlock:
    type_name: str


Block = Union[TextBlock, CodeBlock, ImageBlock, TableBlock, UnknownBlock]


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _parse_spans(children: Any) -> tuple[Span, ...]:
    spans = []
    for child in _list(children):
        if not isinstance(child, dict) or child.get("_type") != "span":
            continue
        text = _str(child.get("text"))
        if text:
            marks = tuple(m for m in _list(child.get("marks")) if isinstance(m, str))
            spans.append(Span(text=text, marks=marks))
    return tuple(spans)


def _parse_mark_defs(mark_defs: Any) -> tuple[MarkDef, ...]:
    return tuple(
        MarkDef(key=_str(d.get("_key")), type=_str(d.get("_type")), href=_str(d.get("href")))
        for d in _list(mark_defs)
        if isinstance(d, dict)
    )


def _parse_text_block(raw: dict) -> TextBlock:
    list_item = raw.get("listItem")
    if list_item:
        list_item = "number" if list_item == "number" else "bullet"
    else:
        list_item = ""
    return TextBlock(
        children=_parse_spans(raw.get("children")),
        style=_str(raw.get("style")) or "normal",
        mark_defs=_parse_mark_defs(raw.get("markDefs")),
        list_item=list_item,
    )


def _parse_text_blocks(raw: Any) -> tuple[TextBlock, ...]:
    return tuple(_parse_text_block(b) for b in _list(raw) if isinstance(b, dict))


def _parse_cell(cell: Any) -> TableCell:
    if isinstance(cell, dict) and cell.get("_type") == "tableCell":
        return TableCell(blocks=_parse_text_blocks(cell.get("content")))
    if isinstance(cell, list):
        return TableCell(blocks=_parse_text_blocks(cell), separator="")
    if isinstance(cell, str) and cell:
        return TableCell(blocks=(TextBlock(children=(Span(cell),)),))
    return TableCell()


def _parse_table(raw: dict) -> TableBlock:
    rows = []
    for row in _list(raw.get("rows")):
        cells = row.get("cells") if isinstance(row, dict) else None
        rows.append(tuple(_parse_cell(c) for c in _list(cells)))
    return TableBlock(rows=tuple(rows))


def _parse_image(raw: dict) -> ImageBlock:
    asset = raw.get("asset")
    return ImageBlock(
        url=_str(raw.get("url")),
        asset_ref=_str(asset.get("_ref")) if isinstance(asset, dict) else "",
        alt=_str(raw.get("description")) or _str(raw.get("alt")),
        caption=_parse_text_blocks(raw.get("caption")),
    )


def parse_block(raw: Any) -> Optional[Block]:
    """Convert one CMS block; ``None`` for values without a ``_type`` tag."""
    if not isinstance(raw, dict) or not raw.get("_type"):
        return None
    type_name = raw["_type"]
    if raw.get("listItem") or type_name == "block":
        return _parse_text_block(raw)
    if type_name in ("code", "codeBlock"):
        return CodeBlock(code=_str(raw.get("code")), language=_str(raw.get("language")))
    if type_name == "image":
        return _parse_image(raw)
    if type_name == "table":
        return _parse_table(raw)
    return UnknownBlock(type_name=str(type_name))


def parse_blocks(raw_blocks: Any) -> list[Block]:
    blocks = []
    for raw in _list(raw_blocks):
        block = parse_block(raw)
        if block is not None:
            blocks.append(block)
    return blocks


def extract_body_blocks(text: str) -> list[Block]:
    """Locate, repair and parse the ``"body":[...]`` array in payload text.

    Payloads decoded with a single unescape pass leave code samples holding a
    backslash followed by a real newline or tab, which JSON rejects; those are
    rewritten to ``\\n`` / ``\\t`` before parsing.  Returns ``[]`` when there
    is no body array or it does not parse.
    """
    m = BODY_RE.search(text or "")
    if m is None:
        return []
    start = m.end() - 1
    end = find_matching_bracket(text, start, limit=None)
    if end == -1:
        return []

    body = text[start:end].replace("\\\n", "\\n").replace("\\\t", "\\t")
    try:
        parsed = json.loads(body, strict=False)
    except (ValueError, RecursionError):
        return []
    if not parsed or not isinstance(parsed[0], dict) or not parsed[0].get("_type"):
        return []
    return parse_blocks(parsed)
