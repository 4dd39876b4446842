"""
Tests for the agent orchestrator: plan stacking, resets, fallbacks, stale
responses and side effects.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bookmark_agent.core.agent import AgentOrchestrator, SideEffectHandler
from bookmark_agent.core.agent.orchestrator import (
    AgentState,
    fail_with_fallback,
    reset,
    stack_plan,
)
from bookmark_agent.core.agent.actions import ActionStep
from bookmark_agent.core.data_models import Bookmark
from bookmark_agent.core.data_sources import InMemoryRepository, JSONFileRepository
from bookmark_agent.utils.error_handler import (
    ErrorCategory,
    ModelRequestError,
    RepositoryWriteError,
)
from tests.conftest import ScriptedLLMClient, fenced


def titles(bookmarks):
    return [b.title for b in bookmarks]


@pytest.fixture
def handler():
    return MagicMock(spec=SideEffectHandler)


async def make_agent(bookmarks, responses, handler=None, **kwargs):
    repository = InMemoryRepository(bookmarks)
    agent = AgentOrchestrator(
        ScriptedLLMClient(responses), repository, handler=handler, **kwargs
    )
    await agent.refresh()
    return agent


class TestStateTransitions:
    """The pure transition functions."""

    def test_stack_appends(self):
        state = AgentState(plan=(ActionStep(action="sortBookmarks"),))
        new_state = stack_plan(state, [ActionStep(action="limitFirst")])
        assert [s.action for s in new_state.plan] == ["sortBookmarks", "limitFirst"]
        assert [s.action for s in state.plan] == ["sortBookmarks"]

    def test_reset_action_replaces(self):
        state = AgentState(plan=(ActionStep(action="sortBookmarks"),))
        new_state = stack_plan(
            state, [ActionStep(action="resetSearch"), ActionStep(action="limitFirst")]
        )
        assert [s.action for s in new_state.plan] == ["resetSearch", "limitFirst"]

    def test_fallback_plan(self):
        state = fail_with_fallback(AgentState(), "rust books", "boom")
        assert state.plan[0].action == "searchBookmarks"
        assert state.plan[0].parameters == {"searchTerm": "rust books"}
        assert state.error.action == "error"
        assert state.error.reasoning == "Failed to process request: boom"

    def test_reset_clears_plan_and_error(self):
        state = fail_with_fallback(AgentState(), "q", "boom")
        cleared = reset(state)
        assert cleared.plan == ()
        assert cleared.error is None


class TestSubmit:
    """Tests for the query cycle."""

    @pytest.mark.asyncio
    async def test_top_three_javascript(self, javascript_bookmarks):
        response = fenced(
            [
                {"action": "limitResults", "parameters": {"count": 3}, "priority": 3},
                {"action": "sortBookmarks", "parameters": {"sortBy": "rating", "order": "desc"}, "priority": 1},
                {"action": "findWithTags", "parameters": {"includeTags": ["javascript"]}, "priority": 2},
            ]
        )
        agent = await make_agent(javascript_bookmarks, [response])

        result = await agent.submit("show top 3 javascript bookmarks")

        assert not result.failed
        assert [s.action for s in result.steps] == [
            "sortBookmarks",
            "findWithTags",
            "limitResults",
        ]
        assert [b.rating for b in result.view] == [5, 4, 2]
        assert all("javascript" in b.tags for b in result.view)

    @pytest.mark.asyncio
    async def test_prompt_contains_query(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [fenced([{"action": "help"}])])
        await agent.submit('find "git" things')
        assert 'find \\"git\\" things' in agent.client.prompts[0]

    @pytest.mark.asyncio
    async def test_plans_stack_until_reset(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks,
            [
                fenced([{"action": "sortBookmarks", "sortBy": "title", "order": "asc"}]),
                fenced([{"action": "findIncludes", "field": "title", "value": "git"}]),
                fenced([{"action": "resetSearch"}]),
            ],
        )

        await agent.submit("sort by title")
        result = await agent.submit("only git")
        assert titles(result.view) == ["GitHub", "gitignore templates"]
        assert len(agent.plan) == 2

        result = await agent.submit("show everything")
        assert [s.action for s in agent.plan] == ["resetSearch"]
        assert len(result.view) == len(sample_bookmarks)

    @pytest.mark.asyncio
    async def test_without_stacking_plans_replace(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks,
            [
                fenced([{"action": "findIncludes", "value": "git"}]),
                fenced([{"action": "limitFirst", "count": 1}]),
            ],
            stack_plans=False,
        )
        await agent.submit("git")
        result = await agent.submit("just one")
        assert titles(result.view) == ["GitHub"]
        assert [s.action for s in agent.plan] == ["limitFirst"]

    @pytest.mark.asyncio
    async def test_stacked_steps_run_in_priority_order(self):
        bookmarks = [
            Bookmark(id=str(n), title=f"B{n}", url=f"https://{n}.example", rating=6 - n)
            for n in range(1, 6)
        ]
        bookmarks[3].tags = ["js"]
        bookmarks[4].tags = ["js"]
        agent = await make_agent(
            bookmarks,
            [
                fenced(
                    [
                        {"action": "sortBookmarks", "sortBy": "rating", "order": "desc", "priority": 1},
                        {"action": "limitFirst", "count": 2, "priority": 3},
                    ]
                ),
                fenced([{"action": "findWithTags", "includeTags": ["js"], "priority": 2}]),
            ],
        )

        await agent.submit("two best rated")
        result = await agent.submit("only js")

        # The tag filter runs before the limit even though it was added later
        assert [b.id for b in result.view] == ["4", "5"]
        assert [s.action for s in agent.plan] == [
            "sortBookmarks",
            "limitFirst",
            "findWithTags",
        ]

    @pytest.mark.asyncio
    async def test_prose_response_falls_back_to_search(self, sample_bookmarks, handler):
        agent = await make_agent(
            sample_bookmarks, ["Sorry, I only speak prose."], handler=handler
        )

        result = await agent.submit("python")

        assert result.failed
        assert result.error.category == ErrorCategory.PLAN
        assert [s.to_dict()["parameters"] for s in result.plan] == [{"searchTerm": "python"}]
        assert titles(result.view) == ["Python Docs"]
        assert agent.state.error is not None
        handler.show_message.assert_called_once()
        assert handler.show_message.call_args.args[1] == "error"

    @pytest.mark.asyncio
    async def test_model_error_falls_back_to_search(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks, [ModelRequestError("boom", provider="gemini", status_code=500)]
        )
        result = await agent.submit("news")
        assert result.error.category == ErrorCategory.MODEL
        assert titles(result.view) == ["Hacker News"]

    @pytest.mark.asyncio
    async def test_blank_query_is_a_no_op(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [])
        result = await agent.submit("   ")
        assert agent.client.prompts == []
        assert len(result.view) == len(sample_bookmarks)

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [])

        async def slow_generate(prompt):
            # A newer query arrives while this one is in flight
            agent.state = agent.state.__class__(
                plan=agent.state.plan,
                snapshot=agent.state.snapshot,
                last_request=agent.state.last_request + 1,
            )
            return fenced([{"action": "limitFirst", "count": 1}])

        agent.client.generate = slow_generate
        result = await agent.submit("one")

        assert result.stale
        assert agent.plan == []

    @pytest.mark.asyncio
    async def test_repository_changes_refresh_the_view(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [])
        agent.attach()
        await agent.repository.create(Bookmark(title="New one", url="https://new.example"))
        assert "New one" in titles(agent.derived_view())

        agent.detach()
        await agent.repository.create(Bookmark(title="Unseen", url="https://unseen.example"))
        assert "Unseen" not in titles(agent.derived_view())

    @pytest.mark.asyncio
    async def test_unreachable_bookmarks_show_invalid(self):
        agent = await make_agent(
            [Bookmark(id="1", title="Dead", url="https://dead.example", unreachable=True)], []
        )
        assert agent.derived_view()[0].url_status.value == "invalid"


class TestSideEffects:
    """Tests for side-effect dispatch."""

    @pytest.mark.asyncio
    async def test_help_and_import_export(self, sample_bookmarks, handler):
        agent = await make_agent(
            sample_bookmarks,
            [fenced([{"action": "help"}, {"action": "exportBookmarks"}])],
            handler=handler,
        )
        result = await agent.submit("help me export")

        handler.open_help.assert_called_once()
        handler.open_import_export.assert_called_once_with("exportBookmarks")
        assert len(result.view) == len(sample_bookmarks)

    @pytest.mark.asyncio
    async def test_remove_duplicates_stages_then_confirms(self, duplicate_bookmarks, handler):
        agent = await make_agent(
            duplicate_bookmarks, [fenced([{"action": "removeDuplicates"}])], handler=handler
        )

        result = await agent.submit("remove duplicates")

        assert result.pending_deletions == ["2"]
        handler.stage_deletions.assert_called_once_with(["2"])

        deleted = await agent.confirm_deletions()
        assert deleted == 1
        assert [b.id for b in await agent.repository.list()] == ["1", "3"]
        assert agent.pending_deletions == []

    @pytest.mark.asyncio
    async def test_no_duplicates_message(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [fenced([{"action": "removeDuplicates"}])])
        result = await agent.submit("dedupe")
        assert result.pending_deletions == []
        assert result.messages[0].text == "No duplicate bookmarks found in the current view."

    @pytest.mark.asyncio
    async def test_cancel_deletions(self, duplicate_bookmarks):
        agent = await make_agent(duplicate_bookmarks, [fenced([{"action": "removeDuplicates"}])])
        await agent.submit("dedupe")
        agent.cancel_deletions()
        assert await agent.confirm_deletions() == 0
        assert len(await agent.repository.list()) == 3

    @pytest.mark.asyncio
    async def test_reorder_persists_and_strips_sort_steps(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks,
            [
                fenced([{"action": "findIncludes", "value": "git"}]),
                fenced(
                    [
                        {"action": "sortBookmarks", "sortBy": "rating", "order": "desc"},
                        {"action": "reorderDescending"},
                    ]
                ),
            ],
        )
        await agent.submit("git")
        result = await agent.submit("sort by rating and save")

        stored = await agent.repository.list()
        assert titles(stored) == ["Python Docs", "GitHub", "gitignore templates", "Hacker News"]
        assert [s.action for s in agent.plan] == ["findIncludes"]
        assert result.messages[-1].text == "Reordered descending by rating and saved."
        assert result.messages[-1].level == "success"

    @pytest.mark.asyncio
    async def test_reorder_failure_keeps_plan(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks,
            [fenced([{"action": "sortBookmarks", "sortBy": "title"}, {"action": "reorder"}])],
        )
        agent.repository.reorder_bookmarks = AsyncMock(
            side_effect=RepositoryWriteError("disk full", source_name="memory")
        )

        result = await agent.submit("sort and save")

        assert result.messages[-1].text == "Failed to persist new order."
        assert [s.action for s in agent.plan] == ["sortBookmarks", "reorder"]
        assert agent.error_handler.get_error_statistics()["total_errors"] == 1

    @pytest.mark.asyncio
    async def test_reload_failure_after_reorder_is_reported(self, sample_bookmarks):
        agent = await make_agent(
            sample_bookmarks,
            [fenced([{"action": "persistSortedOrder", "sortBy": "title"}])],
        )
        current = await agent.repository.list()
        agent.repository.list = AsyncMock(side_effect=[current, RuntimeError("gone")])

        result = await agent.submit("save by title")

        assert result.messages[-1].text == "Failed to persist new order."
        assert [s.action for s in agent.plan] == ["persistSortedOrder"]

    @pytest.mark.asyncio
    async def test_failed_json_save_keeps_order(self, sample_bookmarks, temp_dir):
        repository = JSONFileRepository(temp_dir / "store.json")
        await repository.init()
        await repository.bulk_replace(sample_bookmarks)
        agent = AgentOrchestrator(
            ScriptedLLMClient([fenced([{"action": "reorderDescending", "sortBy": "title"}])]),
            repository,
        )
        await agent.refresh()
        agent.attach()
        (temp_dir / "store.json.tmp").mkdir()

        result = await agent.submit("save by title descending")

        assert result.messages[-1].text == "Failed to persist new order."
        assert titles(await repository.list()) == titles(sample_bookmarks)
        assert titles(agent.derived_view()) == titles(sample_bookmarks)

    @pytest.mark.asyncio
    async def test_reset_clears_plan(self, sample_bookmarks):
        agent = await make_agent(sample_bookmarks, [fenced([{"action": "limitFirst", "count": 1}])])
        await agent.submit("one")
        agent.reset()
        assert agent.plan == []
        assert len(agent.derived_view()) == len(sample_bookmarks)
