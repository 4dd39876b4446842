"""
Bookmark Agent.

Natural-language browsing and organizing of a bookmark collection.
"""

__version__ = "1.0.0"
