"""
Bookmark Repository Protocol.

This module defines the interface the agent uses to read and write the
bookmark collection, so that different storage backends (in-memory, JSON
file, remote stores) can be swapped without touching the agent.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from ...utils.error_handler import RepositoryWriteError
from ..agent.ordering import SortCriterion, sort_bookmarks
from ..data_models import Bookmark

# Called with the full collection after every change
ChangeListener = Callable[[List[Bookmark]], None]
Unsubscribe = Callable[[], None]


@dataclass
class BulkRemoveResult:
    """
    Result of a bulk remove operation.

    Attributes:
        total: Number of ids requested for removal
        succeeded: Number of bookmarks removed
        failed: Number of ids that could not be removed
        errors: Error details for failed removals
    """

    total: int
    succeeded: int
    failed: int
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there were any errors."""
        return self.failed > 0

    def __str__(self) -> str:
        return (
            f"BulkRemoveResult(total={self.total}, "
            f"succeeded={self.succeeded}, "
            f"failed={self.failed})"
        )


@runtime_checkable
class BookmarkRepository(Protocol):
    """
    Protocol for bookmark repositories.

    Every method is a coroutine except ``subscribe``. Repositories assign
    bookmark ids; callers never invent them.

    Example Usage:
        >>> repo = InMemoryRepository()
        >>> await repo.init()
        >>> created = await repo.create(Bookmark(title="Docs", url="https://docs.python.org"))
        >>> unsubscribe = repo.subscribe(lambda all_bookmarks: print(len(all_bookmarks)))
        >>> await repo.reorder_bookmarks([created.id])
    """

    async def init(self) -> None:
        """Prepare the backend (load files, open connections)."""
        ...

    async def list(self) -> List[Bookmark]:
        """
        Return the full collection in stored order.

        Raises:
            RepositoryReadError: If the backend cannot be read
        """
        ...

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener
        """
        ...

    async def create(self, bookmark: Bookmark) -> Bookmark:
        """Store a new bookmark and return it with its assigned id."""
        ...

    async def update(self, bookmark_id: str, patch: Dict[str, Any]) -> Bookmark:
        """
        Apply a partial update.

        Raises:
            BookmarkNotFoundError: If no bookmark has the id
        """
        ...

    async def remove(self, bookmark_id: str) -> None:
        """Delete one bookmark."""
        ...

    async def remove_many(self, bookmark_ids: Iterable[str]) -> BulkRemoveResult:
        """Delete several bookmarks."""
        ...

    async def bulk_replace(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        """Replace the entire collection."""
        ...

    async def reorder_bookmarks(self, ordered_ids: List[str]) -> None:
        """
        Persist a new order.

        Unknown ids are ignored. Existing ids missing from ``ordered_ids``
        are appended in their prior relative order.
        """
        ...

    async def persist_sorted_order(self, criterion: SortCriterion) -> List[str]:
        """Sort the whole collection by a criterion and persist that order."""
        ...


class AbstractBookmarkRepository(ABC):
    """
    Abstract base class for bookmark repositories.

    Provides listener bookkeeping and default implementations of the bulk
    operations in terms of the single-record ones.
    """

    name = "repository"

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    async def init(self) -> None:
        """Nothing to prepare by default."""
        return None

    @abstractmethod
    async def list(self) -> List[Bookmark]:
        pass

    @abstractmethod
    async def create(self, bookmark: Bookmark) -> Bookmark:
        pass

    @abstractmethod
    async def update(self, bookmark_id: str, patch: Dict[str, Any]) -> Bookmark:
        pass

    @abstractmethod
    async def remove(self, bookmark_id: str) -> None:
        pass

    @abstractmethod
    async def bulk_replace(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        pass

    async def reorder_bookmarks(self, ordered_ids: List[str]) -> None:
        """Backends without native ordering support do not override this."""
        raise NotImplementedError(f"{self.name} does not support reordering")

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def remove_many(self, bookmark_ids: Iterable[str]) -> BulkRemoveResult:
        """
        Default bulk remove using individual removes.

        A failed removal is recorded and the remaining ids are still
        processed.
        """
        ids = list(bookmark_ids)
        succeeded = 0
        errors = []

        for bookmark_id in ids:
            try:
                await self.remove(bookmark_id)
                succeeded += 1
            except RepositoryWriteError as e:
                errors.append({"id": bookmark_id, "error": str(e)})

        return BulkRemoveResult(
            total=len(ids),
            succeeded=succeeded,
            failed=len(errors),
            errors=errors,
        )

    async def persist_sorted_order(self, criterion: SortCriterion) -> List[str]:
        """Default sorted-order persistence via reorder_bookmarks."""
        bookmarks = await self.list()
        ordered_ids = [b.id for b in sort_bookmarks(bookmarks, criterion) if b.id]
        await self.reorder_bookmarks(ordered_ids)
        return ordered_ids

    def _notify(self, bookmarks: List[Bookmark]) -> None:
        for listener in list(self._listeners):
            listener([b.copy() for b in bookmarks])
