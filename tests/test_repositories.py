"""
Tests for the in-memory and JSON file bookmark repositories.
"""

import json

import pytest

from bookmark_agent.core.agent.ordering import SortCriterion
from bookmark_agent.core.data_models import Bookmark
from bookmark_agent.core.data_sources import (
    BookmarkRepository,
    InMemoryRepository,
    JSONFileRepository,
)
from bookmark_agent.utils.error_handler import (
    BookmarkNotFoundError,
    RepositoryReadError,
    RepositoryWriteError,
)


class TestInMemoryRepository:
    """Tests for InMemoryRepository."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryRepository(), BookmarkRepository)

    @pytest.mark.asyncio
    async def test_list_returns_copies(self, memory_repository):
        first = await memory_repository.list()
        first[0].title = "changed"
        assert (await memory_repository.list())[0].title == "GitHub"

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self):
        repository = InMemoryRepository()
        created = await repository.create(Bookmark(title="t", url="https://t.example"))
        assert created.id
        assert created.created_at
        assert created.updated_at
        assert created.position == 0

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_reassigned(self):
        repository = InMemoryRepository([Bookmark(id="x"), Bookmark(id="x")])
        stored = await repository.list()
        assert stored[0].id == "x"
        assert stored[1].id != "x"

    @pytest.mark.asyncio
    async def test_update_keeps_id(self, memory_repository):
        updated = await memory_repository.update("1", {"rating": 1, "id": "zzz"})
        assert updated.id == "1"
        assert updated.rating == 1
        assert (await memory_repository.get("1")).rating == 1

    @pytest.mark.asyncio
    async def test_update_unknown_id_raises(self, memory_repository):
        with pytest.raises(BookmarkNotFoundError):
            await memory_repository.update("missing", {"title": "x"})

    @pytest.mark.asyncio
    async def test_remove_many_reports_failures(self, memory_repository):
        result = await memory_repository.remove_many(["1", "missing", "3"])
        assert result.succeeded == 2
        assert result.failed == 1
        assert result.errors[0]["id"] == "missing"
        assert [b.id for b in await memory_repository.list()] == ["2", "4"]

    @pytest.mark.asyncio
    async def test_reorder_appends_unnamed(self, memory_repository):
        await memory_repository.reorder_bookmarks(["4", "2", "unknown"])
        stored = await memory_repository.list()
        assert [b.id for b in stored] == ["4", "2", "1", "3"]
        assert [b.position for b in stored] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_persist_sorted_order(self, memory_repository):
        ordered = await memory_repository.persist_sorted_order(SortCriterion("title", "desc"))
        assert ordered == ["2", "4", "3", "1"]

    @pytest.mark.asyncio
    async def test_subscribers_receive_collection(self, memory_repository):
        received = []
        unsubscribe = memory_repository.subscribe(received.append)

        await memory_repository.remove("1")
        unsubscribe()
        await memory_repository.remove("2")

        assert len(received) == 1
        assert [b.id for b in received[0]] == ["2", "3", "4"]


class TestJSONFileRepository:
    """Tests for JSONFileRepository."""

    @pytest.mark.asyncio
    async def test_missing_file_starts_empty(self, temp_dir):
        repository = JSONFileRepository(temp_dir / "none.json")
        await repository.init()
        assert await repository.list() == []

    @pytest.mark.asyncio
    async def test_loads_and_saves(self, bookmarks_json_file):
        repository = JSONFileRepository(bookmarks_json_file)
        await repository.init()
        assert len(await repository.list()) == 4

        await repository.remove("4")

        data = json.loads(bookmarks_json_file.read_text(encoding="utf-8"))
        assert [item["id"] for item in data] == ["1", "2", "3"]
        assert data[0]["folderId"] == "Dev"
        assert not bookmarks_json_file.with_suffix(".json.tmp").exists()

    @pytest.mark.asyncio
    async def test_reorder_is_persisted(self, bookmarks_json_file):
        repository = JSONFileRepository(bookmarks_json_file)
        await repository.init()
        await repository.reorder_bookmarks(["3", "1"])

        reloaded = JSONFileRepository(bookmarks_json_file)
        await reloaded.init()
        assert [b.id for b in await reloaded.list()] == ["3", "1", "2", "4"]

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RepositoryReadError):
            await JSONFileRepository(path).init()

    @pytest.mark.asyncio
    async def test_non_array_raises(self, temp_dir):
        path = temp_dir / "object.json"
        path.write_text('{"bookmarks": []}', encoding="utf-8")
        with pytest.raises(RepositoryReadError, match="Expected a JSON array"):
            await JSONFileRepository(path).init()

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_state(self, bookmarks_json_file):
        repository = JSONFileRepository(bookmarks_json_file)
        await repository.init()
        received = []
        repository.subscribe(received.append)
        bookmarks_json_file.with_suffix(".json.tmp").mkdir()

        with pytest.raises(RepositoryWriteError):
            await repository.remove("1")
        with pytest.raises(RepositoryWriteError):
            await repository.update("2", {"title": "Renamed"})
        with pytest.raises(RepositoryWriteError):
            await repository.create(Bookmark(title="New", url="https://new.example"))
        with pytest.raises(RepositoryWriteError):
            await repository.reorder_bookmarks(["4", "3", "2", "1"])
        with pytest.raises(RepositoryWriteError):
            await repository.bulk_replace([])

        stored = await repository.list()
        assert [b.id for b in stored] == ["1", "2", "3", "4"]
        assert [b.position for b in stored] == [0, 1, 2, 3]
        assert stored[1].title == "Python Docs"
        assert received == []
