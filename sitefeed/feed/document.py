"""
Feed Document
=============

Loads a generated RSS 2.0 document, exposes its items for in-place editing and
writes it back with its stylesheet processing instruction intact.

lxml only serializes the ``rss`` element, so top-level processing
instructions are taken from the original text and re-attached on output.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import List, Optional, Union

from lxml import etree

from sitefeed.utils.exceptions import FeedError, ErrorCode, ValidationError
from sitefeed.utils.logging import get_logger_for_component
from sitefeed.utils.validators import SlugValidator, URLValidator

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
CONTENT_ENCODED = f"{{{CONTENT_NS}}}encoded"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

STYLESHEET_PI_PATTERN = re.compile(r"<\?xml-stylesheet[^>]+\?>")
LAST_UPDATED_PATTERN = re.compile(r"<!--lastUpdated:(.+?)-->", re.DOTALL)
LAST_UPDATED_COMMENT_PATTERN = re.compile(r"^lastUpdated:(.+)$", re.DOTALL)

logger = get_logger_for_component("feed")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 or RFC-2822 timestamp; naive values are UTC.

    Returns None when the value cannot be parsed.
    """
    value = value.strip()
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class FeedItem:
    """Editable view over one ``<item>`` element."""

    def __init__(self, element: etree._Element):
        self.element = element

    def _child(self, tag: str) -> Optional[etree._Element]:
        return self.element.find(tag)

    def _text(self, tag: str) -> str:
        child = self._child(tag)
        if child is None or child.text is None:
            return ""
        return child.text

    def _set_text(self, tag: str, value: str) -> etree._Element:
        child = self._child(tag)
        if child is None:
            child = etree.SubElement(self.element, tag)
        child.text = value
        return child

    @property
    def title(self) -> str:
        return self._text("title")

    @title.setter
    def title(self, value: str) -> None:
        self._set_text("title", value)

    @property
    def link(self) -> str:
        return self._text("link").strip()

    @property
    def description(self) -> str:
        return self._text("description")

    @description.setter
    def description(self, value: str) -> None:
        self._set_text("description", value)

    @property
    def content(self) -> Optional[str]:
        """The item's ``content:encoded`` fragment, or None when absent."""
        child = self._child(CONTENT_ENCODED)
        if child is None:
            return None
        return child.text or ""

    @content.setter
    def content(self, value: str) -> None:
        child = self._child(CONTENT_ENCODED)
        if child is None:
            child = etree.SubElement(self.element, CONTENT_ENCODED)
        # CDATA cannot carry its own terminator
        child.text = etree.CDATA(value) if "]]>" not in value else value

    @property
    def slug(self) -> str:
        """Post slug derived from the item link.

        Raises:
            ValidationError: If the link carries no usable slug
        """
        return SlugValidator.slug_from_link(self.link)

    def pop_last_updated(self) -> Optional[datetime]:
        """Remove last-modified markers from the title and return the first one.

        Markers look like ``<!--lastUpdated:2024-05-01T10:00:00Z-->`` and appear
        either as escaped title text or as a comment inside ``<title>``.
        """
        title_el = self._child("title")
        if title_el is None:
            return None

        raw_values = []

        for comment in list(title_el.iterchildren(etree.Comment)):
            match = LAST_UPDATED_COMMENT_PATTERN.match((comment.text or "").strip())
            if not match:
                continue
            raw_values.append(match.group(1))
            _remove_preserving_tail(comment)

        text = title_el.text or ""
        raw_values[:0] = LAST_UPDATED_PATTERN.findall(text)
        title_el.text = LAST_UPDATED_PATTERN.sub("", text).strip()
        if len(title_el):
            last = title_el[-1]
            if last.tail:
                last.tail = last.tail.rstrip()

        if not raw_values:
            return None

        timestamp = parse_timestamp(raw_values[0])
        if timestamp is None:
            logger.warning(f"Ignoring unparseable lastUpdated marker {raw_values[0]!r}")
        return timestamp


def _declare_content_namespace(root: etree._Element) -> etree._Element:
    """Return an equivalent root that declares the content prefix itself."""
    if "content" in root.nsmap:
        return root
    nsmap = dict(root.nsmap)
    nsmap["content"] = CONTENT_NS
    rebuilt = etree.Element(root.tag, attrib=dict(root.attrib), nsmap=nsmap)
    rebuilt.text = root.text
    for child in list(root):
        rebuilt.append(child)
    return rebuilt


def _remove_preserving_tail(node: etree._Element) -> None:
    parent = node.getparent()
    tail = node.tail or ""
    previous = node.getprevious()
    if previous is not None:
        previous.tail = (previous.tail or "") + tail
    else:
        parent.text = (parent.text or "") + tail
    parent.remove(node)


class FeedDocument:
    """A parsed RSS document bound to the file it was loaded from."""

    def __init__(self, root: etree._Element, raw_text: str, path: Optional[Path] = None):
        self.root = _declare_content_namespace(root)
        self.raw_text = raw_text
        self.path = path

    @classmethod
    def parse(cls, raw_text: str, path: Optional[Path] = None) -> "FeedDocument":
        """Parse feed text.

        Raises:
            FeedError: If the text is not a well-formed RSS document
        """
        parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            strip_cdata=False,
            remove_blank_text=False,
        )
        try:
            root = etree.fromstring(raw_text.encode("utf-8"), parser)
        except etree.XMLSyntaxError as e:
            raise FeedError(
                f"Feed is not well-formed XML: {e}",
                feed_path=str(path) if path else None,
                error_code=ErrorCode.FEED_PARSE_ERROR,
            ) from e

        if root.tag != "rss" or root.find("channel") is None:
            raise FeedError(
                f"Expected an RSS document with a channel, got <{root.tag}>",
                feed_path=str(path) if path else None,
                error_code=ErrorCode.FEED_INVALID_DOCUMENT,
            )

        return cls(root, raw_text, path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FeedDocument":
        """Read and parse a feed file.

        Raises:
            FeedError: If the file is missing, unreadable or malformed
        """
        path = Path(path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise FeedError(
                f"Feed document not found: {path}",
                feed_path=str(path),
                error_code=ErrorCode.FEED_NOT_FOUND,
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise FeedError(
                f"Feed document unreadable: {e}",
                feed_path=str(path),
                error_code=ErrorCode.FEED_PARSE_ERROR,
            ) from e

        return cls.parse(raw_text.lstrip("\ufeff"), path)

    @property
    def channel(self) -> etree._Element:
        return self.root.find("channel")

    @property
    def base_url(self) -> str:
        """Site base URL from the channel link, without trailing slash.

        Raises:
            FeedError: If the channel has no usable link
        """
        link = self.channel.findtext("link") or ""
        try:
            return URLValidator.normalize_base_url(link)
        except ValidationError as e:
            raise FeedError(
                f"Channel link is not a usable base URL: {link!r}",
                feed_path=str(self.path) if self.path else None,
                error_code=ErrorCode.FEED_INVALID_DOCUMENT,
            ) from e

    def items(self) -> List[FeedItem]:
        return [FeedItem(element) for element in self.channel.findall("item")]

    @property
    def stylesheet_instruction(self) -> str:
        """The original ``<?xml-stylesheet ...?>`` instruction, or ''."""
        match = STYLESHEET_PI_PATTERN.search(self.raw_text)
        return match.group(0) if match else ""

    def serialize(self) -> str:
        """Serialize with declaration and stylesheet instruction."""
        body = etree.tostring(self.root, encoding="unicode")
        header = XML_DECLARATION + self.stylesheet_instruction
        return f"{header}\n{body}\n"

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the document, in place unless another path is given.

        Raises:
            FeedError: If the document cannot be written
        """
        target = Path(path) if path else self.path
        if target is None:
            raise FeedError(
                "No path to save feed document to",
                error_code=ErrorCode.FEED_WRITE_ERROR,
            )
        try:
            target.write_text(self.serialize(), encoding="utf-8")
        except OSError as e:
            raise FeedError(
                f"Could not write feed document: {e}",
                feed_path=str(target),
                error_code=ErrorCode.FEED_WRITE_ERROR,
            ) from e
        return target
