"""
SiteFeed Content Module
=======================

Rendered post page extraction and feed-safe sanitization.
"""
