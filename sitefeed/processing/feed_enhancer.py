"""
Feed Content Enhancer
=====================

Build-time pass over the generated RSS feed: every item gets the sanitized
body of its rendered post page as ``content:encoded``.

Items are processed sequentially in document order. A failure on one item is
logged and recorded, the item keeps its original content, and the remaining
items are still processed. Only document-level problems (missing or malformed
feed, unusable channel link) abort the run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sitefeed.cache.post_cache import PostCache, needs_refresh
from sitefeed.config.settings import EnhancerSettings, get_settings
from sitefeed.content.extractor import PostPageExtractor
from sitefeed.content.sanitizer import PostSanitizer, plain_text_excerpt
from sitefeed.feed.document import FeedDocument, FeedItem
from sitefeed.utils.exceptions import SiteFeedError, handle_exception
from sitefeed.utils.logging import PerformanceLogger, get_enhancer_logger


@dataclass
class EnhancementReport:
    """Outcome of one enhancer run."""

    sanitized: List[str] = field(default_factory=list)
    from_cache: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    total_items: int = 0
    duration_seconds: Optional[float] = None

    @property
    def enhanced_count(self) -> int:
        return len(self.sanitized) + len(self.from_cache)

    @property
    def success(self) -> bool:
        return not self.failed


class FeedContentEnhancer:
    """
    Rewrites feed item content from rendered post pages.

    Features:
    - Main-region extraction with generated sections removed
    - Allow-list sanitization with absolute asset URLs
    - Slug-keyed cache reused while posts are unchanged
    - Plain-text description for items without one
    """

    def __init__(self, settings: Optional[EnhancerSettings] = None):
        self.settings = settings or get_settings().enhancer
        self.logger = get_enhancer_logger()
        self.cache = PostCache(self.settings.cache_dir)
        self.extractor = PostPageExtractor(
            self.settings.posts_path, self.settings.autogenerated_section_ids
        )

    @property
    def last_build_time(self) -> Optional[datetime]:
        return self.settings.last_build_time

    def run(self) -> EnhancementReport:
        """
        Enhance every item of the feed and write it back in place.

        Returns:
            Report of sanitized, cached and failed items

        Raises:
            FeedError: If the feed document cannot be loaded, used or saved
        """
        report = EnhancementReport()

        with PerformanceLogger(
            self.logger, "feed enhancement", feed_path=str(self.settings.feed_path)
        ) as timer:
            document = FeedDocument.load(self.settings.feed_path)
            sanitizer = PostSanitizer.from_settings(document.base_url, self.settings)

            items = document.items()
            report.total_items = len(items)
            self.logger.info(
                f"Enhancing {len(items)} feed items from {self.settings.feed_path}"
            )

            for item in items:
                self._process_item(item, sanitizer, report)

            document.save()

        report.duration_seconds = timer.duration
        self.logger.info(
            f"Enhanced {report.enhanced_count}/{report.total_items} items "
            f"({len(report.sanitized)} sanitized, {len(report.from_cache)} cached, "
            f"{len(report.failed)} failed)"
        )
        return report

    def _process_item(
        self, item: FeedItem, sanitizer: PostSanitizer, report: EnhancementReport
    ) -> None:
        key = item.link or item.title
        try:
            slug = item.slug
            key = slug
            self.enhance_item(item, slug, sanitizer, report)
        except (SiteFeedError, OSError, ValueError) as e:
            error = handle_exception(
                e, self.logger.bind(slug=key), f"enhance item {key}", {"slug": key}
            )
            report.failed[key] = str(error)

    def enhance_item(
        self,
        item: FeedItem,
        slug: str,
        sanitizer: PostSanitizer,
        report: EnhancementReport,
    ) -> None:
        """Attach sanitized content to a single item."""
        log = self.logger.bind(slug=slug)

        html_content = self.extractor.read_post_page(slug)

        last_updated = item.pop_last_updated()

        if needs_refresh(self.cache.exists(slug), last_updated, self.last_build_time):
            main_region = self.extractor.extract_main_region(html_content, slug=slug)
            content = sanitizer.sanitize(main_region)
            self.cache.write(slug, content)
            report.sanitized.append(slug)
            log.debug("Sanitized post content")
        else:
            content = self.cache.read(slug)
            report.from_cache.append(slug)
            log.debug("Reused cached post content")

        item.content = content

        if not item.description.strip():
            item.description = plain_text_excerpt(content, self.settings.description_length)
