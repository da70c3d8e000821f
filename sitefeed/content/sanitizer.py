"""
Post Sanitizer
==============

Turns the main region of a rendered post into markup fit for a feed reader.

This module provides:
- Allow-list sanitization of tags and attributes
- Absolute URLs for internal assets
- Removal of icon and emoji decoration images
- Popover spans collapsed to text or promoted to plain links
- Removal of empty container elements
"""

import html
import re
from typing import Iterable

from bs4 import BeautifulSoup, Comment, Tag
from bs4.element import CData, Declaration, Doctype, ProcessingInstruction

from sitefeed.config.settings import EnhancerSettings
from sitefeed.utils.logging import get_logger_for_component

PARSER = "html.parser"


class PostSanitizer:
    """
    Allow-list HTML sanitizer for feed item content.

    Disallowed tags are unwrapped so their text survives; tags whose content
    is not text (scripts, styles, embeds) are dropped together with it.
    """

    ALLOWED_TAGS = {
        # Document sections
        "address", "article", "aside", "footer", "header",
        "h1", "h2", "h3", "h4", "h5", "h6", "hgroup", "main", "nav", "section",
        # Block text content
        "blockquote", "dd", "div", "dl", "dt", "figcaption", "figure", "hr",
        "li", "ol", "p", "pre", "ul",
        # Inline text
        "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "dfn",
        "em", "i", "kbd", "mark", "q", "rb", "rp", "rt", "rtc", "ruby", "s",
        "samp", "small", "span", "strong", "sub", "sup", "time", "u", "var",
        "wbr",
        # Table content
        "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th",
        "thead", "tr",
        # Images
        "img",
    }

    ALLOWED_ATTRIBUTES = {
        "a": {"href", "title", "target"},
        "img": {"src", "alt", "title"},
        "td": {"align", "valign"},
        "th": {"align", "valign", "colspan", "rowspan"},
        "span": {"data-popover-target", "data-href"},
    }

    # Dropped along with everything inside them
    NON_TEXT_TAGS = {
        "script", "style", "textarea", "option", "noscript", "template",
        "iframe", "object", "embed", "svg",
    }

    # Elements that are meaningful without text content; table structure is
    # kept whole so empty cells do not shift columns
    KEEP_EMPTY_TAGS = {
        "br", "hr", "img", "wbr",
        "table", "thead", "tbody", "tfoot", "tr", "td", "th", "colgroup", "col",
    }

    URL_ATTRIBUTES = ("href", "src")
    ALLOWED_SCHEMES = {"http", "https", "ftp", "mailto", "tel"}

    POPOVER_ATTRIBUTE = "data-popover-target"
    POST_PATH_PREFIX = "/posts/"
    SCREEN_READER_CLASS = "sr-only"

    WHITESPACE_PATTERN = re.compile(r"\s+")
    SCHEME_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
    CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x20]+")

    def __init__(
        self,
        base_url: str,
        asset_prefix: str = "/notion/",
        icon_src_prefixes: Iterable[str] = ("https://www.notion.so/icons/",),
        emoji_alt_prefixes: Iterable[str] = ("custom emoji with name ",),
        wrapper_class: str = "-feed-entry-content",
    ):
        """
        Args:
            base_url: Absolute site URL without trailing slash
            asset_prefix: Path prefix of internal assets rewritten to absolute URLs
            icon_src_prefixes: Image sources treated as icon decoration
            emoji_alt_prefixes: Image alt texts treated as emoji decoration
            wrapper_class: Class of the element wrapping the sanitized content
        """
        self.base_url = base_url.rstrip("/")
        self.asset_prefix = asset_prefix
        self.icon_src_prefixes = tuple(icon_src_prefixes)
        self.emoji_alt_prefixes = tuple(emoji_alt_prefixes)
        self.wrapper_class = wrapper_class
        self.logger = get_logger_for_component("sanitizer")

    @classmethod
    def from_settings(cls, base_url: str, settings: EnhancerSettings) -> "PostSanitizer":
        return cls(
            base_url,
            asset_prefix=settings.asset_prefix,
            icon_src_prefixes=settings.icon_src_prefixes,
            emoji_alt_prefixes=settings.emoji_alt_prefixes,
            wrapper_class=settings.wrapper_class,
        )

    def sanitize(self, fragment: str) -> str:
        """
        Sanitize a post body fragment and wrap it for the feed.

        Args:
            fragment: Inner HTML of the post's main region

        Returns:
            Wrapped, sanitized HTML fragment
        """
        soup = BeautifulSoup(fragment, PARSER)

        self._remove_non_content_nodes(soup)
        self._remove_non_text_elements(soup)
        self._convert_popovers(soup)
        self._transform_images(soup)
        self._unwrap_disallowed_elements(soup)
        self._clean_attributes(soup)
        self._remove_empty_elements(soup)
        self._remove_title_heading(soup)

        body = soup.decode().strip()
        self.logger.debug(f"Sanitized fragment: {len(fragment)} -> {len(body)} chars")
        return self.wrap(body)

    def wrap(self, body: str) -> str:
        css_class = html.escape(self.wrapper_class, quote=True)
        return f'<div class="{css_class}">\n{body}\n</div>'

    def _remove_non_content_nodes(self, soup: BeautifulSoup) -> None:
        """Remove comments, CDATA, doctypes and processing instructions."""
        for node in soup.find_all(
            string=lambda text: isinstance(
                text, (Comment, CData, ProcessingInstruction, Doctype, Declaration)
            )
        ):
            node.extract()

    def _remove_non_text_elements(self, soup: BeautifulSoup) -> None:
        for element in soup.find_all(self.NON_TEXT_TAGS):
            if not element.decomposed:
                element.decompose()

    def _convert_popovers(self, soup: BeautifulSoup) -> None:
        """Collapse in-page popovers to text and turn post popovers into links."""
        for span in soup.find_all("span", attrs={self.POPOVER_ATTRIBUTE: True}):
            if span.decomposed or span.parent is None:
                continue

            href = (span.get("data-href") or "").strip()

            if href.startswith("#"):
                span.unwrap()
            elif href.startswith(self.POST_PATH_PREFIX):
                for hidden in span.find_all(self._is_screen_reader_label):
                    if not hidden.decomposed:
                        hidden.decompose()
                text = self.WHITESPACE_PATTERN.sub(" ", span.get_text()).strip()

                anchor = soup.new_tag("a", href=f"{self.base_url}{href}")
                anchor.string = text or href
                span.replace_with(anchor)

    def _is_screen_reader_label(self, tag: Tag) -> bool:
        """Only ``<span class="sr-only">`` exactly, not spans sharing the class."""
        return tag.name == "span" and tag.get("class") == [self.SCREEN_READER_CLASS]

    def _transform_images(self, soup: BeautifulSoup) -> None:
        for img in soup.find_all("img"):
            src = (img.get("src") or "").strip()
            alt = img.get("alt") or ""

            if src.startswith(self.icon_src_prefixes) or alt.startswith(self.emoji_alt_prefixes):
                img.decompose()
                continue

            if self.asset_prefix and src.startswith(self.asset_prefix):
                img["src"] = f"{self.base_url}{src}"

    def _unwrap_disallowed_elements(self, soup: BeautifulSoup) -> None:
        for element in soup.find_all(True):
            if element.name not in self.ALLOWED_TAGS:
                element.unwrap()

    def _clean_attributes(self, soup: BeautifulSoup) -> None:
        """Keep allow-listed attributes and drop unsafe URL schemes."""
        for element in soup.find_all(True):
            allowed = self.ALLOWED_ATTRIBUTES.get(element.name, set())
            element.attrs = {
                name: value for name, value in element.attrs.items() if name in allowed
            }

            for name in self.URL_ATTRIBUTES:
                if name in element.attrs and not self._is_safe_url(element[name]):
                    del element[name]

    def _is_safe_url(self, value) -> bool:
        if isinstance(value, list):
            value = " ".join(value)
        compact = self.CONTROL_CHARS_PATTERN.sub("", value)
        match = self.SCHEME_PATTERN.match(compact)
        return match is None or match.group(1).lower() in self.ALLOWED_SCHEMES

    def _is_empty(self, element: Tag) -> bool:
        if element.name in self.KEEP_EMPTY_TAGS:
            return False
        if element.get_text().strip():
            return False
        if element.find("img") is not None:
            return False
        if element.name in ("span", "div"):
            return True
        return not element.attrs

    def _remove_empty_elements(self, soup: BeautifulSoup) -> None:
        # Reverse document order visits children before their parents
        for element in reversed(soup.find_all(True)):
            if element.decomposed or element.parent is None:
                continue
            if self._is_empty(element):
                element.decompose()

    def _remove_title_heading(self, soup: BeautifulSoup) -> None:
        """The first h1 repeats the item title."""
        heading = soup.find("h1")
        if heading is not None:
            heading.decompose()


def plain_text_excerpt(html_content: str, limit: int = 50) -> str:
    """Tag-free, whitespace-collapsed text truncated to ``limit`` characters."""
    text = BeautifulSoup(html_content, PARSER).get_text(" ")
    text = PostSanitizer.WHITESPACE_PATTERN.sub(" ", text).strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text
