"""
Duplicate Bookmark Detection Module

Detects duplicate bookmarks by title and URL (case-insensitive, ignoring
surrounding whitespace). The first occurrence of each key is kept; later
occurrences are reported for removal.
"""

from typing import List, Sequence, Tuple

from .data_models import Bookmark

DuplicateKey = Tuple[str, str]


def duplicate_key(bookmark: Bookmark) -> DuplicateKey:
    """Identity key used for duplicate detection."""
    return (
        (bookmark.title or "").strip().lower(),
        (bookmark.url or "").strip().lower(),
    )


def find_duplicates(bookmarks: Sequence[Bookmark]) -> List[str]:
    """
    Find the ids of duplicate bookmarks.

    Args:
        bookmarks: Bookmarks to scan, in display order

    Returns:
        Ids of every bookmark whose key was already seen, in input order
    """
    seen = set()
    duplicates = []
    for bookmark in bookmarks:
        key = duplicate_key(bookmark)
        if key in seen:
            if bookmark.id:
                duplicates.append(bookmark.id)
        else:
            seen.add(key)
    return duplicates

