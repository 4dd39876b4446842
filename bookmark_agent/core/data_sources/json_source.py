"""
JSON File Bookmark Repository

An in-memory repository that loads its collection from a JSON file on
init and writes it back after every change.
"""

import json
import logging
from pathlib import Path
from typing import Union

from ...utils.error_handler import RepositoryReadError, RepositoryWriteError
from ..data_models import Bookmark
from .memory_source import InMemoryRepository


class JSONFileRepository(InMemoryRepository):
    """
    Bookmark repository persisted to a JSON array on disk.

    Writes go to a temporary file first and are then renamed over the
    target, so a crash never leaves a half-written collection behind.
    """

    name = "json"

    def __init__(self, path: Union[str, Path], indent: int = 2):
        super().__init__()
        self.path = Path(path)
        self.indent = indent
        self.logger = logging.getLogger(__name__)

    async def init(self) -> None:
        """
        Load the collection from disk.

        A missing file starts an empty collection.

        Raises:
            RepositoryReadError: If the file is unreadable or not a JSON array
        """
        if not self.path.exists():
            self.logger.info(f"No bookmark file at {self.path}, starting empty")
            self._bookmarks = []
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryReadError(
                f"Failed to read {self.path}", source_name=self.name, original_error=e
            ) from e

        if not isinstance(data, list):
            raise RepositoryReadError(
                f"Expected a JSON array of bookmarks in {self.path}",
                source_name=self.name,
            )

        loaded = [Bookmark.from_dict(item) for item in data if isinstance(item, dict)]
        self._bookmarks = self._with_ids(loaded)
        self._reposition()
        self.logger.info(f"Loaded {len(self._bookmarks)} bookmarks from {self.path}")

    async def _save(self) -> None:
        temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(
                    [b.to_dict() for b in self._bookmarks],
                    f,
                    indent=self.indent,
                    ensure_ascii=False,
                )
            # Atomic rename
            temp_file.replace(self.path)
        except OSError as e:
            raise RepositoryWriteError(
                f"Failed to write {self.path}", source_name=self.name, original_error=e
            ) from e

        self.logger.debug(f"Saved {len(self._bookmarks)} bookmarks to {self.path}")
