#!/usr/bin/env python3
"""
Main entry point for the Bookmark Agent.

Used by the console script and for running from a source checkout.
"""

import sys

from bookmark_agent.cli import main

if __name__ == "__main__":
    sys.exit(main())
