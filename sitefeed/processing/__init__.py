"""
SiteFeed Processing Module
==========================

The feed content enhancer run once per site build.
"""
