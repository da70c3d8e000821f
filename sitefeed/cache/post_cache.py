"""
Post Content Cache
==================

File cache of sanitized feed fragments, one ``<slug>.html`` per post, kept
between builds so unchanged posts are not sanitized again.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from sitefeed.utils.exceptions import CacheError
from sitefeed.utils.logging import get_cache_logger
from sitefeed.utils.validators import SlugValidator

CACHE_SUFFIX = ".html"


def needs_refresh(
    cache_exists: bool,
    last_updated: Optional[datetime],
    last_build_time: Optional[datetime],
) -> bool:
    """Decide whether a post must be sanitized again.

    Args:
        cache_exists: Whether a cache entry exists for the post
        last_updated: Last-modified marker carried by the feed item
        last_build_time: Timestamp of the previous build, if known

    Returns:
        True when the cached fragment cannot be trusted
    """
    if not cache_exists:
        return True
    if last_build_time is None or last_updated is None:
        return True
    return last_updated > last_build_time


class PostCache:
    """Directory of sanitized fragments keyed by post slug."""

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)
        self.logger = get_cache_logger()
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(
                f"Cannot create cache directory: {e}", cache_path=str(self.cache_dir)
            ) from e

    def path_for(self, slug: str) -> Path:
        return self.cache_dir / f"{SlugValidator.validate_slug(slug)}{CACHE_SUFFIX}"

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).is_file()

    def read(self, slug: str) -> str:
        """Read a cached fragment.

        Raises:
            CacheError: If the entry is missing or unreadable
        """
        path = self.path_for(slug)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CacheError(f"Cannot read cache entry: {e}", cache_path=str(path)) from e

    def write(self, slug: str, fragment: str) -> Path:
        """Persist a sanitized fragment.

        Raises:
            CacheError: If the entry cannot be written
        """
        path = self.path_for(slug)
        try:
            path.write_text(fragment, encoding="utf-8")
        except OSError as e:
            raise CacheError(f"Cannot write cache entry: {e}", cache_path=str(path)) from e
        self.logger.debug(f"Cached {len(fragment)} chars for {slug}")
        return path

    def remove(self, slug: str) -> bool:
        path = self.path_for(slug)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError(f"Cannot remove cache entry: {e}", cache_path=str(path)) from e
        return True

    def slugs(self) -> List[str]:
        return sorted(path.stem for path in self.cache_dir.glob(f"*{CACHE_SUFFIX}"))

    def clear(self) -> int:
        """Remove every cache entry and return how many were removed."""
        removed = 0
        for slug in self.slugs():
            if self.remove(slug):
                removed += 1
        self.logger.info(f"Cleared {removed} cache entries from {self.cache_dir}")
        return removed
