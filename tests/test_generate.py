import datetime as dt
import json
import pathlib
from unittest import mock

import pytest

from nometa import generate


ARTICLE = {
    "title": "Agents & Tools",
    "slug": "agents-tools",
    "content": "# Agents & Tools\n\nFirst paragraph about **agents**.\n\n## Details\n\nMore text.",
    "source": "Anthropic Engineering",
    "sourceUrl": "https://www.anthropic.com",
    "originalUrl": "https://www.anthropic.com/engineering/agents-tools",
    "publishedDate": "2025-03-05T09:30:00Z",
    "translatedAt": "2025-03-06T10:00:00Z",
    "translationProvider": "claude-api",
}


def test_parse_date_formats():
    assert generate.parse_date("2025-03-05") == dt.datetime(2025, 3, 5)
    assert generate.parse_date("2025-03-05T12:00:00+04:00") == dt.datetime(2025, 3, 5, 8)
    assert generate.parse_date("Wed, 01 Jan 2025 10:00:00 GMT") == dt.datetime(2025, 1, 1, 10)
    assert generate.parse_date("") is None
    assert generate.parse_date("not a date") is None


def test_date_filters():
    assert generate.format_date("2025-03-05") == "5 Mart 2025"
    assert generate.format_date("2025-06-30T23:00:00Z") == "30 İyun 2025"
    assert generate.format_date(None) == ""
    assert generate.format_date_iso("2025-03-05T09:30:00Z") == "2025-03-05"
    assert generate.format_rfc822("2025-01-01T10:00:00Z") == "Wed, 01 Jan 2025 10:00:00 GMT"


def test_plain_text():
    assert generate.plain_text("<p>Hello <b>world</b> &amp; **more**</p>") == "Hello world & more"
    assert generate.plain_text("one two three four", max_length=9) == "one two..."


def test_reading_time():
    assert generate.reading_time("") == (0, 1)
    assert generate.reading_time("word " * 450) == (450, 3)


def test_paragraphs_to_html():
    assert generate.paragraphs_to_html("# Head\n\nPara <b>\n\n\n") == "<h1>Head</h1>\n<p>Para &lt;b&gt;</p>"


def test_remove_leading_h1():
    assert generate.remove_leading_h1("<h1 class='t'>Title</h1>\n<p>Body</p>") == "<p>Body</p>"
    assert generate.remove_leading_h1("<p>Intro</p><h1>Late</h1>") == "<p>Intro</p><h1>Late</h1>"


def test_article_page_prefers_html_content():
    article = dict(ARTICLE, htmlContent="<h1>Agents</h1>\n<p>Rendered <em>body</em></p>")
    page = generate.render_article_page(article)
    assert "<p>Rendered <em>body</em></p>" in page
    assert "<h1>Agents</h1>" not in page
    assert "<title>Agents &amp; Tools | NoMeta.az</title>" in page
    assert f'href="{generate.SITE_URL}/news/agents-tools/"' in page
    assert "5 Mart 2025" in page
    assert "Claude AI ilə tərcümə edilib." in page


def test_article_page_from_markdown():
    page = generate.render_article_page(ARTICLE)
    assert "<h2>Details</h2>" in page
    assert "<p>More text.</p>" in page


def test_index_page_without_articles():
    assert "Hələlik məqalə yoxdur" in generate.render_index_page([])


def test_rss_feed_respects_item_cap():
    second = dict(ARTICLE, slug="second", title="Second")
    with mock.patch.object(generate, "RSS_MAX_ITEMS", 1):
        feed = generate.render_rss_feed(
            [ARTICLE, second], build_date=dt.datetime(2025, 3, 7, tzinfo=dt.timezone.utc)
        )
    assert feed.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert feed.count("<item>") == 1
    assert "<lastBuildDate>Fri, 07 Mar 2025 00:00:00 GMT</lastBuildDate>" in feed
    assert "<pubDate>Wed, 05 Mar 2025 09:30:00 GMT</pubDate>" in feed
    assert "<title>Agents &amp; Tools</title>" in feed


def test_sitemap():
    sitemap = generate.render_sitemap([ARTICLE], today=dt.date(2025, 5, 5))
    assert "<lastmod>2025-05-05</lastmod>" in sitemap
    assert f"<loc>{generate.SITE_URL}/news/agents-tools/</loc>" in sitemap
    assert "<lastmod>2025-03-06</lastmod>" in sitemap


def test_generate_site_writes_files(tmp_path, capsys):
    news_dir = tmp_path / "news"
    result = generate.generate_site([ARTICLE, {"title": "No slug"}], news_dir)

    assert result == {"articles_generated": 1, "output_dir": str(news_dir)}
    assert (news_dir / "agents-tools" / "index.html").exists()
    assert (news_dir / "index.html").exists()
    assert (news_dir / "feed.xml").exists()
    assert (tmp_path / "sitemap.xml").exists()
    assert "Skipping article without slug" in capsys.readouterr().out
    for path in (news_dir / "index.html", news_dir / "feed.xml", tmp_path / "sitemap.xml"):
        text = path.read_text(encoding="utf-8")
        assert "/news//" not in text
        assert "No slug" not in text


def test_main_reads_article_json(tmp_path):
    source = tmp_path / "published.json"
    source.write_text(json.dumps([ARTICLE]), encoding="utf-8")
    generate.main([str(source), "--out", str(tmp_path / "site" / "news")])
    assert (tmp_path / "site" / "news" / "agents-tools" / "index.html").exists()


def test_main_rejects_non_list(tmp_path):
    source = tmp_path / "bad.json"
    source.write_text("{}", encoding="utf-8")
    with pytest.raises(SystemExit):
        generate.main([str(source)])
