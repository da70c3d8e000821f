"""
SiteFeed - Static Site Feed Enhancement
=======================================

Build-time post-processing for statically generated sites.

Main Components:
- Feed: RSS document loading and in-place rewriting
- Content: rendered page extraction and allow-list sanitization
- Cache: slug-keyed sanitized fragments reused across builds
- Processing: the feed content enhancer run after each build
- Components: fixed-aspect-ratio media container markup
"""

__version__ = "0.3.0"
__description__ = "Build-time RSS content enhancement for static sites"

from .config.settings import get_settings
from .processing.feed_enhancer import FeedContentEnhancer, EnhancementReport
from .components.media_container import MediaContainer
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import SiteFeedError

__all__ = [
    "get_settings",
    "FeedContentEnhancer",
    "EnhancementReport",
    "MediaContainer",
    "configure_application_logging",
    "get_logger_for_component",
    "SiteFeedError",
]
