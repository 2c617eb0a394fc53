"""Render body blocks to HTML (for the static pages) and Markdown.

Markdown is the compact form handed to translation; HTML is stored alongside
it.  Both renderers walk the same block sequence and share the list-grouping
rules: consecutive list items of one kind form one list, and any other block
closes it.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from .blocks import (
    Block,
    CodeBlock,
    ImageBlock,
    TableBlock,
    TableCell,
    TextBlock,
    UnknownBlock,
    parse_block,
)

__all__ = [
    "escape_html",
    "render_blocks_to_html",
    "render_blocks_to_markdown",
    "render_children_html",
    "render_children_markdown",
]

HEADING_STYLES = {"h1": 1, "h2": 2, "h3": 3, "h4": 4}
_BLOCK_TYPES = (TextBlock, CodeBlock, ImageBlock, TableBlock, UnknownBlock)


def escape_html(text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _coerce_blocks(blocks: Any) -> list[Block]:
    if not isinstance(blocks, (list, tuple)):
        return []
    result = []
    for block in blocks:
        if not isinstance(block, _BLOCK_TYPES):
            block = parse_block(block)
        if block is not None:
            result.append(block)
    return result


# ---- inline spans ----

def render_children_html(block: TextBlock) -> str:
    parts = []
    for span in block.children:
        text = escape_html(span.text)
        for mark in span.marks:
            if mark == "strong":
                text = f"<strong>{text}</strong>"
            elif mark == "em":
                text = f"<em>{text}</em>"
            elif mark == "code":
                text = f"<code>{text}</code>"
            else:
                mark_def = block.find_mark_def(mark)
                if mark_def and mark_def.type == "link" and mark_def.href:
                    text = f'<a href="{escape_html(mark_def.href)}">{text}</a>'
        parts.append(text)
    return "".join(parts)


def render_children_markdown(block: TextBlock) -> str:
    parts = []
    for span in block.children:
        text = span.text
        for mark in span.marks:
            if mark == "strong":
                text = f"**{text}**"
            elif mark == "em":
                text = f"*{text}*"
            elif mark == "code":
                text = f"`{text}`"
            else:
                mark_def = block.find_mark_def(mark)
                if mark_def and mark_def.type == "link" and mark_def.href:
                    text = f"[{text}]({mark_def.href})"
        parts.append(text)
    return "".join(parts)


def _join_blocks(blocks: Iterable[TextBlock], render, separator: str) -> str:
    return separator.join(render(b) for b in blocks)


# ---- HTML ----

def _text_block_html(block: TextBlock) -> str:
    content = render_children_html(block)
    if not content.strip():
        return ""
    level = HEADING_STYLES.get(block.style)
    if level:
        return f"<h{level}>{content}</h{level}>"
    if block.style == "blockquote":
        return f"<blockquote>{content}</blockquote>"
    return f"<p>{content}</p>"


def _image_html(block: ImageBlock) -> str:
    if not (block.url or block.asset_ref):
        return ""
    caption = _join_blocks(block.caption, render_children_html, " ").strip()
    figcaption = f"<figcaption>{caption}</figcaption>" if caption else ""
    src = f'src="{escape_html(block.url)}" ' if block.url else ""
    return f'<figure><img {src}alt="{escape_html(block.alt)}" />{figcaption}</figure>'


def _cell_html(cell: TableCell) -> str:
    return _join_blocks(cell.blocks, render_children_html, cell.separator)


def _table_html(block: TableBlock) -> str:
    if not block.rows:
        return ""
    lines = ["<table>"]
    for index, row in enumerate(block.rows):
        tag = "th" if index == 0 else "td"
        lines.append("<tr>")
        lines.extend(f"<{tag}>{_cell_html(cell)}</{tag}>" for cell in row)
        lines.append("</tr>")
    lines.append("</table>")
    return "\n".join(lines)


def _block_html(block: Block) -> str:
    if isinstance(block, TextBlock):
        return _text_block_html(block)
    if isinstance(block, CodeBlock):
        return (
            f'<pre><code class="language-{escape_html(block.language)}">'
            f"{escape_html(block.code)}</code></pre>"
        )
    if isinstance(block, ImageBlock):
        return _image_html(block)
    if isinstance(block, TableBlock):
        return _table_html(block)
    return ""


def render_blocks_to_html(blocks: Any) -> str:
    """Render ``blocks`` (parsed or raw CMS dicts) to an HTML fragment."""
    html = []
    current_list = None
    for block in _coerce_blocks(blocks):
        if isinstance(block, TextBlock) and block.list_item:
            tag = "ol" if block.list_item == "number" else "ul"
            if current_list != tag:
                if current_list:
                    html.append(f"</{current_list}>")
                html.append(f"<{tag}>")
                current_list = tag
            html.append(f"<li>{render_children_html(block)}</li>")
            continue

        if current_list:
            html.append(f"</{current_list}>")
            current_list = None

        rendered = _block_html(block)
        if rendered:
            html.append(rendered)

    if current_list:
        html.append(f"</{current_list}>")
    return "\n".join(html)


# ---- Markdown ----

def _text_block_markdown(block: TextBlock) -> list[str]:
    text = render_children_markdown(block)
    if not text.strip():
        return []
    level = HEADING_STYLES.get(block.style)
    if level:
        return [f"\n{'#' * level} {text}\n"]
    if block.style == "blockquote":
        return [f"\n> {text}\n"]
    return [f"\n{text}\n"]


def _image_markdown(block: ImageBlock) -> list[str]:
    if not (block.url or block.asset_ref):
        return []
    lines = [f"\n![{block.alt}]({block.url})"]
    caption = _join_blocks(block.caption, render_children_markdown, " ").strip()
    if caption:
        lines.append(f"*{caption}*")
    lines.append("")
    return lines


def _table_markdown(block: TableBlock) -> list[str]:
    if not block.rows:
        return []
    lines = [""]
    for index, row in enumerate(block.rows):
        cells = [
            _join_blocks(cell.blocks, render_children_markdown, cell.separator)
            for cell in row
        ]
        lines.append(f"| {' | '.join(cells)} |")
        if index == 0:
            lines.append(f"| {' | '.join('---' for _ in cells)} |")
    lines.append("")
    return lines


def _block_markdown(block: Block) -> list[str]:
    if isinstance(block, TextBlock):
        return _text_block_markdown(block)
    if isinstance(block, CodeBlock):
        return [f"\n```{block.language}\n{block.code}\n```\n"]
    if isinstance(block, ImageBlock):
        return _image_markdown(block)
    if isinstance(block, TableBlock):
        return _table_markdown(block)
    return []


def render_blocks_to_markdown(blocks: Any) -> str:
    """Render ``blocks`` to Markdown; numbered lists restart after any other block."""
    lines: list[str] = []
    counter = 0
    for block in _coerce_blocks(blocks):
        if isinstance(block, TextBlock) and block.list_item:
            text = render_children_markdown(block)
            if block.list_item == "number":
                counter += 1
                lines.append(f"{counter}. {text}")
            else:
                lines.append(f"- {text}")
            continue
        counter = 0
        lines.extend(_block_markdown(block))

    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
