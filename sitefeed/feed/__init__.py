"""
SiteFeed Feed Module
====================

RSS document handling: parsing, item access, last-modified markers and
serialization that keeps the stylesheet processing instruction.
"""
