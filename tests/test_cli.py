"""
Tests for the command-line interface.

The language model is replaced with a scripted client so that whole runs
can be exercised without network access.
"""

import json
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from bookmark_agent.cli import CLIInterface, ConsoleSideEffectHandler, render_bookmarks
from bookmark_agent.core.data_models import Bookmark
from tests.conftest import ScriptedLLMClient, fenced


class ScriptedContextClient(ScriptedLLMClient):
    """Scripted client usable as an async context manager."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def console_text(console: Console) -> str:
    return console.export_text()


@pytest.fixture
def console():
    return Console(record=True, width=200, force_terminal=False)


@pytest.fixture
def cli(console, temp_dir, monkeypatch):
    """CLI with logging disabled and the working directory in a temp dir."""
    monkeypatch.chdir(temp_dir)
    monkeypatch.setattr("bookmark_agent.cli.setup_logging", MagicMock())
    return CLIInterface(console=console)


def use_responses(monkeypatch, responses):
    client = ScriptedContextClient(responses)
    monkeypatch.setattr(
        "bookmark_agent.cli.create_llm_from_config", lambda config: client
    )
    return client


class TestArgumentValidation:
    """Tests for argument combinations rejected before anything runs."""

    def test_requires_input_or_store(self, cli, console):
        assert cli.run(["--query", "git"]) == 1
        assert "Either --input or --store is required" in console_text(console)

    def test_missing_input_file(self, cli, console, temp_dir):
        assert cli.run(["--input", str(temp_dir / "missing.json"), "-q", "x"]) == 1
        assert "Input file not found" in console_text(console)

    def test_persist_needs_input(self, cli, console, temp_dir):
        assert cli.run(["--store", str(temp_dir / "s.json"), "--persist", "-q", "x"]) == 1
        assert "--persist" in console_text(console)

    def test_unknown_provider_rejected_by_parser(self, cli):
        with pytest.raises(SystemExit):
            cli.parse_args(["--input", "b.json", "--provider", "nope"])


class TestQueryRun:
    """Tests for single-query runs."""

    def test_query_prints_filtered_view(self, cli, console, monkeypatch, bookmarks_json_file):
        client = use_responses(
            monkeypatch,
            [fenced([{"action": "findIncludes", "field": "title", "value": "git"}])],
        )

        exit_code = cli.run(["--input", str(bookmarks_json_file), "--query", "git stuff"])

        output = console_text(console)
        assert exit_code == 0
        assert "GitHub" in output
        assert "gitignore templates" in output
        assert "Hacker News" not in output
        assert "Plan: findIncludes" in output
        assert "git stuff" in client.prompts[0]

    def test_export_writes_view(self, cli, monkeypatch, bookmarks_json_file, temp_dir):
        use_responses(monkeypatch, [fenced([{"action": "findWithTags", "includeTags": ["python"]}])])
        export_path = temp_dir / "python.json"

        exit_code = cli.run(
            ["-i", str(bookmarks_json_file), "-q", "python", "--export", str(export_path)]
        )

        assert exit_code == 0
        exported = json.loads(export_path.read_text(encoding="utf-8"))
        assert [b["title"] for b in exported] == ["Python Docs"]

    def test_remove_duplicates_and_persist(self, cli, monkeypatch, temp_dir, duplicate_bookmarks):
        input_path = temp_dir / "dupes.json"
        input_path.write_text(
            json.dumps([b.to_dict() for b in duplicate_bookmarks]), encoding="utf-8"
        )
        use_responses(monkeypatch, [fenced([{"action": "removeDuplicates"}])])

        exit_code = cli.run(["-i", str(input_path), "-q", "dedupe", "--yes", "--persist"])

        assert exit_code == 0
        saved = json.loads(input_path.read_text(encoding="utf-8"))
        assert [b["id"] for b in saved] == ["1", "3"]

    def test_model_failure_falls_back_to_search(self, cli, console, monkeypatch, bookmarks_json_file):
        use_responses(monkeypatch, [RuntimeError("model offline")])

        exit_code = cli.run(["-i", str(bookmarks_json_file), "-q", "python"])

        output = console_text(console)
        assert exit_code == 0
        assert "Python Docs" in output
        assert "GitHub" not in output


class TestRendering:
    def test_render_bookmarks_table(self):
        table = render_bookmarks(
            [Bookmark(id="1", title="GitHub", url="https://github.com", tags=["git"], rating=3)],
            title="View",
        )
        console = Console(record=True, width=200)
        console.print(table)
        output = console.export_text()

        assert "View (1)" in output
        assert "***" in output
        assert "valid" in output

    def test_side_effect_handler_messages(self, console):
        handler = ConsoleSideEffectHandler(console)
        handler.stage_deletions(["2", "5"])
        handler.show_message("All done", level="success")
        handler.open_import_export("exportBookmarks")

        output = console_text(console)
        assert "2 bookmark(s) staged for deletion." in output
        assert "All done" in output
        assert "--export" in output
