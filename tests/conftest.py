"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for SiteFeed tests.

Most tests run against a temporary build tree shaped like a real static site
build: ``dist/rss.xml`` with an ``xml-stylesheet`` instruction and one rendered
page per post under ``dist/posts/<slug>/index.html``.
"""

import logging
import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["SITEFEED_DEBUG"] = "false"
os.environ.pop("SITEFEED_LOGGING__FILE_PATH", None)
os.environ.pop("SITEFEED_ENHANCER__LAST_BUILD_TIME", None)

BASE_URL = "https://example.com"

STYLESHEET_PI = '<?xml-stylesheet href="/rss/styles.xsl" type="text/xsl"?>'

HELLO_WORLD_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><title>Hello World</title><style>body { color: black; }</style></head>
<body>
<nav class="site-nav"><a href="/">Home</a></nav>
<main class="post">
  <h1 class="title">Hello World</h1>
  <p class="lead" style="color: red">First paragraph with <strong>bold</strong> text.</p>
  <script>alert("tracking")</script>
  <p><img src="https://www.notion.so/icons/star_yellow.svg" alt="icon">Icon line</p>
  <p><img src="/notion/emoji/party.png" alt="custom emoji with name party">Emoji line</p>
  <figure><img src="/notion/images/photo.png" alt="A photo" width="600"></figure>
  <p>See <span data-popover-target="popover-1" data-href="/posts/caf%C3%A9"><span class="sr-only">Preview of</span>Café post</span>.</p>
  <p>Jump to <span data-popover-target="popover-2" data-href="#details">details</span>.</p>
  <p><a href="javascript:alert(1)" onclick="steal()">bad link</a> and <a href="https://other.example/" class="external">good link</a></p>
  <div class="spacer"></div>
  <form action="/search"><input name="q"><label>Search label</label></form>
  <div id="autogenerated-post-comments"><div>Comment one</div></div>
  <div id="autogenerated-media-links"><a href="/media">Media list</a></div>
  <details id="autogenerated-external-links"><summary>External links</summary><a href="https://x.example">x</a></details>
</main>
<footer>Site footer</footer>
</body>
</html>
"""

CAFE_PAGE = """<!DOCTYPE html>
<html><body><main><h1>Café</h1><p>Coffee notes from the café.</p></main></body></html>
"""


def build_feed(items_xml: str, stylesheet: str = STYLESHEET_PI, base_url: str = BASE_URL + "/") -> str:
    """Return an RSS document wrapping the given item elements."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>{stylesheet}
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>{base_url}</link>
    <description>Posts from the example blog</description>
{items_xml}
  </channel>
</rss>
"""


DEFAULT_ITEMS = """    <item>
      <title>Hello World&lt;!--lastUpdated:2024-05-01T10:00:00.000Z--&gt;</title>
      <link>https://example.com/posts/hello-world/</link>
      <description></description>
    </item>
    <item>
      <title>Café<!--lastUpdated:2024-04-01T08:00:00Z--></title>
      <link>https://example.com/posts/caf%C3%A9/</link>
      <description>Existing description</description>
    </item>
    <item>
      <title>Missing Post</title>
      <link>https://example.com/posts/missing-post/</link>
      <description>Was never rendered</description>
      <content:encoded xmlns:content="http://purl.org/rss/1.0/modules/content/"><![CDATA[<p>original</p>]]></content:encoded>
    </item>"""


def write_page(dist_dir: Path, slug: str, html: str) -> Path:
    page = dist_dir / "posts" / slug / "index.html"
    page.parent.mkdir(parents=True, exist_ok=True)
    page.write_text(html, encoding="utf-8")
    return page


# ============================================================================
# Build Tree Fixtures
# ============================================================================


@pytest.fixture
def dist_dir(tmp_path):
    """Build output with a feed and rendered pages for two of its three posts."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "rss.xml").write_text(build_feed(DEFAULT_ITEMS), encoding="utf-8")
    write_page(dist, "hello-world", HELLO_WORLD_PAGE)
    write_page(dist, "café", CAFE_PAGE)
    return dist


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "rss-cache"


@pytest.fixture
def enhancer_settings(dist_dir, cache_dir):
    """Enhancer settings pointing at the temporary build tree."""
    from sitefeed.config.settings import EnhancerSettings

    return EnhancerSettings(dist_dir=str(dist_dir), cache_dir=str(cache_dir))


@pytest.fixture
def sanitizer():
    from sitefeed.content.sanitizer import PostSanitizer

    return PostSanitizer(BASE_URL)


@pytest.fixture(autouse=True)
def reset_sitefeed_state():
    """Drop cached settings and CLI-installed log handlers between tests."""
    from sitefeed.config import settings as settings_module

    settings_module._settings = None
    yield
    settings_module._settings = None
    logging.getLogger("sitefeed").handlers.clear()
