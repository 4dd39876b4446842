"""
Core bookmark agent modules.

This package contains the bookmark data model, filters, duplicate
detection, import/export, URL checking, the repositories, the language
model clients and the agent itself.
"""

from .data_models import Bookmark, UrlStatus
from .duplicate_detector import duplicate_key, find_duplicates

__all__ = [
    "Bookmark",
    "UrlStatus",
    "duplicate_key",
    "find_duplicates",
]
