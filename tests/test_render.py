import pytest

from nometa.blocks import CodeBlock, ImageBlock, MarkDef, Span, TableBlock, TableCell, TextBlock, UnknownBlock
from nometa.render import escape_html, render_blocks_to_html, render_blocks_to_markdown


def _block(text, style="normal", list_item=""):
    return TextBlock(children=(Span(text),), style=style, list_item=list_item)


SECTION = [
    {"_type": "block", "style": "h2", "children": [{"_type": "span", "text": "Section"}]},
    {"_type": "block", "style": "normal", "children": [{"_type": "span", "text": "text"}]},
    {"_type": "block", "listItem": "bullet", "children": [{"_type": "span", "text": "a"}]},
    {"_type": "block", "listItem": "bullet", "children": [{"_type": "span", "text": "b"}]},
]


def test_heading_paragraph_and_list():
    assert render_blocks_to_html(SECTION) == (
        "<h2>Section</h2>\n<p>text</p>\n<ul>\n<li>a</li>\n<li>b</li>\n</ul>"
    )
    assert render_blocks_to_markdown(SECTION) == "## Section\n\ntext\n\n- a\n- b"


@pytest.mark.parametrize("blocks", [None, [], "not blocks", [{"no": "type"}]])
def test_empty_input_renders_nothing(blocks):
    assert render_blocks_to_html(blocks) == ""
    assert render_blocks_to_markdown(blocks) == ""


def test_code_block():
    blocks = [{"_type": "code", "language": "python", "code": 'print("hi")'}]
    assert render_blocks_to_html(blocks) == (
        '<pre><code class="language-python">print(&quot;hi&quot;)</code></pre>'
    )
    assert render_blocks_to_markdown(blocks) == '```python\nprint("hi")\n```'


def test_marks_apply_in_order():
    block = TextBlock(children=(Span("x", ("strong", "em")),))
    assert render_blocks_to_html([block]) == "<p><em><strong>x</strong></em></p>"
    assert render_blocks_to_markdown([block]) == "***x***"


def test_links_and_unresolved_marks():
    block = TextBlock(
        children=(
            Span("docs", ("lnk",)),
            Span(" and "),
            Span("code", ("code",)),
            Span(" plus ", ("missing",)),
            Span("<tag>", ("strong",)),
        ),
        mark_defs=(MarkDef(key="lnk", type="link", href='https://e.com/?a=1&b="2"'),),
    )
    assert render_blocks_to_html([block]) == (
        '<p><a href="https://e.com/?a=1&amp;b=&quot;2&quot;">docs</a> and '
        "<code>code</code> plus <strong>&lt;tag&gt;</strong></p>"
    )
    assert render_blocks_to_markdown([block]) == (
        '[docs](https://e.com/?a=1&b="2") and `code` plus **<tag>**'
    )


def test_blank_text_blocks_are_skipped():
    blocks = [_block("   "), TextBlock(), _block("kept")]
    assert render_blocks_to_html(blocks) == "<p>kept</p>"
    assert render_blocks_to_markdown(blocks) == "kept"


def test_headings_and_blockquote():
    blocks = [_block("One", "h1"), _block("Four", "h4"), _block("Quote", "blockquote"), _block("Odd", "h6")]
    assert render_blocks_to_html(blocks) == (
        "<h1>One</h1>\n<h4>Four</h4>\n<blockquote>Quote</blockquote>\n<p>Odd</p>"
    )
    assert render_blocks_to_markdown(blocks) == "# One\n\n#### Four\n\n> Quote\n\nOdd"


def test_switching_list_kind_closes_previous_list():
    blocks = [_block("a", list_item="bullet"), _block("b", list_item="number"), _block("c", list_item="number")]
    assert render_blocks_to_html(blocks) == (
        "<ul>\n<li>a</li>\n</ul>\n<ol>\n<li>b</li>\n<li>c</li>\n</ol>"
    )
    assert render_blocks_to_markdown(blocks) == "- a\n1. b\n2. c"


def test_numbering_restarts_after_other_block():
    blocks = [
        _block("a", list_item="number"),
        _block("b", list_item="number"),
        _block("para"),
        _block("c", list_item="number"),
    ]
    assert render_blocks_to_markdown(blocks) == "1. a\n2. b\n\npara\n\n1. c"
    assert render_blocks_to_html(blocks) == (
        "<ol>\n<li>a</li>\n<li>b</li>\n</ol>\n<p>para</p>\n<ol>\n<li>c</li>\n</ol>"
    )


def test_unknown_block_closes_list_and_renders_nothing():
    blocks = [_block("a", list_item="bullet"), UnknownBlock("callout"), _block("b", list_item="bullet")]
    assert render_blocks_to_html(blocks) == "<ul>\n<li>a</li>\n</ul>\n<ul>\n<li>b</li>\n</ul>"


def test_image_with_caption():
    image = ImageBlock(
        url="https://cdn.test/a.png",
        alt='A "diagram"',
        caption=(TextBlock(children=(Span("Figure", ("em",)),)),),
    )
    assert render_blocks_to_html([image]) == (
        '<figure><img src="https://cdn.test/a.png" alt="A &quot;diagram&quot;" />'
        "<figcaption><em>Figure</em></figcaption></figure>"
    )
    assert render_blocks_to_markdown([image]) == '![A "diagram"](https://cdn.test/a.png)\n**Figure**'


def test_image_without_source():
    assert render_blocks_to_html([ImageBlock(asset_ref="image-1", alt="x")]) == (
        '<figure><img alt="x" /></figure>'
    )
    assert render_blocks_to_html([ImageBlock(alt="nothing")]) == ""
    assert render_blocks_to_markdown([ImageBlock(alt="nothing")]) == ""


def test_table():
    table = TableBlock(
        rows=(
            (TableCell(blocks=(_block("Name"),)), TableCell(blocks=(_block("Value"),))),
            (TableCell(blocks=(_block("a"), _block("b"))), TableCell(blocks=(_block("1"),), separator="")),
        )
    )
    assert render_blocks_to_html([table]) == (
        "<table>\n<tr>\n<th>Name</th>\n<th>Value</th>\n</tr>\n"
        "<tr>\n<td>a b</td>\n<td>1</td>\n</tr>\n</table>"
    )
    assert render_blocks_to_markdown([table]) == "| Name | Value |\n| --- | --- |\n| a b | 1 |"


def test_parsed_and_raw_blocks_mix():
    blocks = [CodeBlock(code="a < b"), {"_type": "block", "children": [{"_type": "span", "text": "after"}]}]
    assert render_blocks_to_html(blocks) == (
        '<pre><code class="language-">a &lt; b</code></pre>\n<p>after</p>'
    )


def test_escape_html():
    assert escape_html('<a href="x">&</a>') == "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"
    assert escape_html(None) == ""
    assert escape_html("it's") == "it's"
