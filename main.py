#!/usr/bin/env python3
"""
SiteFeed - Static Site Feed Enhancement
=======================================

Entry point for running the CLI from a checkout without installing.

Usage:
    python main.py --help                # Show all commands
    python main.py enhance               # Enhance dist/rss.xml after a build
    python main.py check-config          # Validate configuration
"""

import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from sitefeed.cli import main

if __name__ == '__main__':
    main()
