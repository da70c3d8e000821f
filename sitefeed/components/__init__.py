"""
SiteFeed Components
===================

Presentational markup helpers for site templates.
"""
