import pytest

from nometa.payloads import extract_payloads, unescape_json_string, unescape_payload


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def test_extracts_payloads_in_source_order():
    html = """
        <html><body>
        <script>self.__next_f.push([1,"hello world"])</script>
        <script>self.__next_f.push([1,"second payload"])</script>
        <script>self.__next_f.push([2,"third"])</script>
        </body></html>
    """
    assert extract_payloads(html) == ["hello world", "second payload", "third"]


def test_decodes_escaped_json_object():
    html = (
        r'<script>self.__next_f.push([1,"{\"title\":\"Demo\",\"slug\":{\"current\":\"demo\"},'
        r'\"publishedOn\":\"2025-01-01\",\"summary\":\"S\"}"])</script>'
    )
    assert extract_payloads(html) == [
        '{"title":"Demo","slug":{"current":"demo"},"publishedOn":"2025-01-01","summary":"S"}'
    ]


def test_whitespace_and_unicode_escapes():
    html = r'self.__next_f.push([1,"caf\u00e9\nnext\tcol"])'
    assert extract_payloads(html) == ["café\nnext\tcol"]


def test_clean_text_is_unchanged():
    assert unescape_payload("plain text, no escapes {} []") == "plain text, no escapes {} []"


@pytest.mark.parametrize("original", ['say "hi"', '{"title":"Building Agents"}', 'a\\"b'])
def test_double_encoded_round_trip(original):
    assert unescape_payload(_escape(_escape(original))) == original


def test_single_pass_keeps_inner_json_escapes():
    html = r'self.__next_f.push([1,"x \\\"q\\\" y"])'
    assert extract_payloads(html, double_unescape=False) == ['x \\"q\\" y']
    assert extract_payloads(html) == ['x "q" y']


def test_no_payloads():
    assert extract_payloads("") == []
    assert extract_payloads("<html><body><p>No scripts here</p></body></html>") == []


def test_unterminated_push_is_skipped():
    html = 'self.__next_f.push([1,"ok"]) self.__next_f.push([1,"broken'
    assert extract_payloads(html) == ["ok"]


def test_unescape_json_string():
    assert unescape_json_string(r"line\nnext \"q\" c:\\x") == 'line\nnext "q" c:\\x'
    assert unescape_json_string("") == ""
