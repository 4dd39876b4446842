"""
Bookmark Repositories.

This module provides the storage backends the agent reads from and writes
to.

Main Components:
    - BookmarkRepository: Protocol defining the repository interface
    - AbstractBookmarkRepository: Base class with default bulk operations
    - InMemoryRepository: List-backed repository
    - JSONFileRepository: Repository persisted to a JSON file

Usage:
    >>> from bookmark_agent.core.data_sources import JSONFileRepository
    >>> repo = JSONFileRepository("bookmarks.json")
    >>> await repo.init()
    >>> bookmarks = await repo.list()
"""

from .protocol import (
    AbstractBookmarkRepository,
    BookmarkRepository,
    BulkRemoveResult,
    ChangeListener,
    Unsubscribe,
)
from .memory_source import InMemoryRepository
from .json_source import JSONFileRepository

__all__ = [
    "BookmarkRepository",
    "AbstractBookmarkRepository",
    "BulkRemoveResult",
    "ChangeListener",
    "Unsubscribe",
    "InMemoryRepository",
    "JSONFileRepository",
]
