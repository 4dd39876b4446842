"""
In-Memory Bookmark Repository

Keeps the collection in a Python list. Used directly in tests and as the
base for the JSON file repository.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from ...utils.error_handler import BookmarkNotFoundError
from ..data_models import Bookmark, utc_now_iso
from .protocol import AbstractBookmarkRepository


class InMemoryRepository(AbstractBookmarkRepository):
    """
    Bookmark repository backed by a list.

    Ids are uuid4 strings, ``position`` mirrors the list index and every
    write notifies subscribers with the full collection.
    """

    name = "memory"

    def __init__(self, bookmarks: Optional[Iterable[Bookmark]] = None):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self._bookmarks: List[Bookmark] = []
        if bookmarks:
            self._bookmarks = self._with_ids(bookmarks)
            self._reposition()

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def _with_ids(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        stored = []
        seen = set()
        for bookmark in bookmarks:
            item = bookmark.copy()
            if not item.id or item.id in seen:
                item.id = self._new_id()
            seen.add(item.id)
            stored.append(item)
        return stored

    def _reposition(self) -> None:
        for index, bookmark in enumerate(self._bookmarks):
            bookmark.position = index

    def _index_of(self, bookmark_id: str) -> int:
        for index, bookmark in enumerate(self._bookmarks):
            if bookmark.id == bookmark_id:
                return index
        raise BookmarkNotFoundError(
            f"No bookmark with id {bookmark_id}", source_name=self.name
        )

    async def _commit(self, bookmarks: List[Bookmark]) -> None:
        """
        Make a new list the collection, save it and notify subscribers.

        The previous collection is restored when saving fails.
        """
        previous = self._bookmarks
        self._bookmarks = bookmarks
        self._reposition()
        try:
            await self._save()
        except Exception:
            self._bookmarks = previous
            self._reposition()
            raise
        self._notify(self._bookmarks)

    async def _save(self) -> None:
        """Hook for persistent subclasses."""
        return None

    async def list(self) -> List[Bookmark]:
        return [b.copy() for b in self._bookmarks]

    async def get(self, bookmark_id: str) -> Bookmark:
        return self._bookmarks[self._index_of(bookmark_id)].copy()

    async def create(self, bookmark: Bookmark) -> Bookmark:
        item = bookmark.copy()
        existing_ids = {b.id for b in self._bookmarks}
        if not item.id or item.id in existing_ids:
            item.id = self._new_id()

        now = utc_now_iso()
        item.created_at = item.created_at or now
        item.updated_at = now

        await self._commit(self._bookmarks + [item])
        self.logger.debug(f"Created bookmark {item.id}")
        return item.copy()

    async def update(self, bookmark_id: str, patch: Dict[str, Any]) -> Bookmark:
        index = self._index_of(bookmark_id)
        updated = self._bookmarks[index].with_patch(patch)
        updated.updated_at = utc_now_iso()
        bookmarks = list(self._bookmarks)
        bookmarks[index] = updated
        await self._commit(bookmarks)
        return updated.copy()

    async def remove(self, bookmark_id: str) -> None:
        index = self._index_of(bookmark_id)
        await self._commit(self._bookmarks[:index] + self._bookmarks[index + 1 :])
        self.logger.debug(f"Removed bookmark {bookmark_id}")

    async def bulk_replace(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        await self._commit(self._with_ids(bookmarks))
        self.logger.info(f"Replaced collection with {len(self._bookmarks)} bookmarks")
        return [b.copy() for b in self._bookmarks]

    async def reorder_bookmarks(self, ordered_ids: List[str]) -> None:
        by_id = {b.id: b for b in self._bookmarks}
        reordered = []
        placed = set()

        for bookmark_id in ordered_ids:
            if bookmark_id in by_id and bookmark_id not in placed:
                reordered.append(by_id[bookmark_id])
                placed.add(bookmark_id)

        # Records not named keep their relative order at the end
        reordered.extend(b for b in self._bookmarks if b.id not in placed)

        await self._commit(reordered)
