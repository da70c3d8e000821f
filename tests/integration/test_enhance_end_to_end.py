"""
End-to-end enhancement of a temporary build tree through the CLI.
"""

import pytest
from click.testing import CliRunner
from lxml import etree

from sitefeed.cli import cli
from sitefeed.feed.document import CONTENT_ENCODED, CONTENT_NS, XML_DECLARATION

from conftest import HELLO_WORLD_PAGE, STYLESHEET_PI, write_page

pytestmark = pytest.mark.integration


@pytest.fixture
def run_enhance(monkeypatch, tmp_path, dist_dir, cache_dir):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    def run(*extra):
        result = runner.invoke(
            cli,
            ["enhance", "--dist-dir", str(dist_dir), "--cache-dir", str(cache_dir), *extra],
            obj={},
        )
        assert result.exit_code == 0, result.output
        return (dist_dir / "rss.xml").read_text(encoding="utf-8")

    return run


def test_enhanced_feed_is_valid_rss(run_enhance):
    output = run_enhance()

    assert output.startswith(XML_DECLARATION + STYLESHEET_PI + "\n")

    root = etree.fromstring(output.encode("utf-8"))
    assert root.nsmap["content"] == CONTENT_NS

    items = root.findall("channel/item")
    assert [item.findtext("title") for item in items] == ["Hello World", "Café", "Missing Post"]

    contents = [item.findtext(CONTENT_ENCODED) for item in items]
    assert contents[0].startswith('<div class="-feed-entry-content">')
    assert 'src="https://example.com/notion/images/photo.png"' in contents[0]
    assert "Coffee notes" in contents[1]
    assert contents[2] == "<p>original</p>"


def test_rerun_without_changes_is_stable(run_enhance):
    first = run_enhance()
    second = run_enhance()

    assert second == first


def test_rendering_a_missing_post_later(run_enhance, dist_dir, cache_dir):
    run_enhance()
    write_page(dist_dir, "missing-post", HELLO_WORLD_PAGE.replace("First paragraph", "Late paragraph"))

    output = run_enhance()

    root = etree.fromstring(output.encode("utf-8"))
    missing = root.findall("channel/item")[2]
    assert "Late paragraph" in missing.findtext(CONTENT_ENCODED)
    assert missing.findtext("description") == "Was never rendered"
    assert (cache_dir / "missing-post.html").is_file()


def test_edited_post_refreshed_with_build_time(run_enhance, dist_dir, cache_dir):
    run_enhance()

    feed_path = dist_dir / "rss.xml"
    feed_path.write_text(
        feed_path.read_text(encoding="utf-8").replace(
            "<title>Café</title>",
            "<title>Café&lt;!--lastUpdated:2024-07-01T00:00:00Z--&gt;</title>",
        ),
        encoding="utf-8",
    )
    write_page(
        dist_dir, "café", "<html><body><main><h1>Café</h1><p>Rewritten notes.</p></main></body></html>"
    )

    output = run_enhance("--last-build-time", "2024-06-01T00:00:00Z")

    assert "Rewritten notes." in output
    assert "Rewritten notes." in (cache_dir / "café.html").read_text(encoding="utf-8")
    assert "lastUpdated" not in output
