"""
Pytest configuration and shared fixtures for bookmark agent tests.

This module provides sample bookmark collections, repositories and a
scripted language model client shared across test modules.
"""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

from bookmark_agent.core.data_models import Bookmark
from bookmark_agent.core.data_sources import InMemoryRepository

# Environment variables read by the configuration manager
CONFIG_ENV_VARS = (
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "XAI_API_KEY",
    "GROK_API_KEY",
    "BOOKMARK_AGENT_PROVIDER",
)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep API keys from the developer's shell out of the tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="bookmark_agent_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path)


# ============================================================================
# Bookmark Fixtures
# ============================================================================


@pytest.fixture
def sample_bookmarks() -> List[Bookmark]:
    """A small mixed collection with ids already assigned."""
    return [
        Bookmark(
            id="1",
            title="GitHub",
            url="https://github.com",
            description="Where the code lives",
            tags=["dev", "git"],
            rating=4,
            folder_id="Dev",
            created_at="2024-01-03T10:00:00+00:00",
        ),
        Bookmark(
            id="2",
            title="Python Docs",
            url="https://docs.python.org/3/",
            description="Standard library reference",
            tags=["python", "docs"],
            rating=5,
            folder_id="Dev/Python",
            created_at="2024-01-01T10:00:00+00:00",
        ),
        Bookmark(
            id="3",
            title="gitignore templates",
            url="https://github.com/github/gitignore",
            tags=["git"],
            rating=2,
            folder_id="Dev",
            created_at="2024-01-02T10:00:00+00:00",
        ),
        Bookmark(
            id="4",
            title="Hacker News",
            url="https://news.ycombinator.com",
            description="Tech news",
            tags=["news"],
            rating=0,
            created_at="2024-01-04T10:00:00+00:00",
        ),
    ]


@pytest.fixture
def javascript_bookmarks() -> List[Bookmark]:
    """Three javascript-tagged bookmarks rated 2, 4 and 5 plus two untagged."""
    return [
        Bookmark(id="a", title="Some JS tips", url="https://a.example", tags=["javascript"], rating=2),
        Bookmark(id="b", title="Cooking", url="https://b.example", rating=5),
        Bookmark(id="c", title="JS weekly", url="https://c.example", tags=["javascript"], rating=4),
        Bookmark(id="d", title="Gardening", url="https://d.example", rating=3),
        Bookmark(id="e", title="Modern JS", url="https://e.example", tags=["javascript"], rating=5),
    ]


@pytest.fixture
def duplicate_bookmarks() -> List[Bookmark]:
    """Bookmarks 1 and 2 differ only in case."""
    return [
        Bookmark(id="1", title="A", url="x"),
        Bookmark(id="2", title="a", url="X"),
        Bookmark(id="3", title="B", url="y"),
    ]


@pytest.fixture
def memory_repository(sample_bookmarks) -> InMemoryRepository:
    """In-memory repository seeded with the sample bookmarks."""
    return InMemoryRepository(sample_bookmarks)


@pytest.fixture
def bookmarks_json_file(temp_dir: Path, sample_bookmarks) -> Path:
    """Sample bookmarks written as a JSON array."""
    path = temp_dir / "bookmarks.json"
    path.write_text(
        json.dumps([b.to_dict() for b in sample_bookmarks], indent=2), encoding="utf-8"
    )
    return path


# ============================================================================
# Language Model Fixtures
# ============================================================================


class ScriptedLLMClient:
    """
    Language model stand-in returning queued responses.

    An exception in the queue is raised instead of returned.
    """

    def __init__(self, responses: Optional[list] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def queue(self, response) -> None:
        self.responses.append(response)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        return response


def fenced(payload) -> str:
    """Model-style reply with a fenced JSON block."""
    return "Here is the plan:\n```json\n" + json.dumps(payload) + "\n```"


@pytest.fixture
def llm_client() -> ScriptedLLMClient:
    return ScriptedLLMClient()
