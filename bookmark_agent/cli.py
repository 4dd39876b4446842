"""
Command-line interface for the Bookmark Agent.

Loads a bookmark collection, sends natural-language requests to the agent
and prints the resulting view as a table. Without --query an interactive
session is started where requests stack until reset.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from bookmark_agent import __version__
from bookmark_agent.config.pydantic_config import AppConfig, ConfigurationManager
from bookmark_agent.core.agent import AgentOrchestrator, AgentResult, SideEffectHandler
from bookmark_agent.core.data_models import Bookmark
from bookmark_agent.core.data_sources import InMemoryRepository, JSONFileRepository
from bookmark_agent.core.import_export import load_bookmarks, save_bookmarks
from bookmark_agent.core.llm import LLM_PROVIDERS, create_llm_from_config
from bookmark_agent.core.url_checker import URLChecker, status_patch
from bookmark_agent.utils.error_handler import BookmarkAgentError
from bookmark_agent.utils.logging_setup import setup_logging

HELP_TEXT = """\
Ask for what you want to see, for example:
  show my 5 best rated javascript bookmarks
  only bookmarks tagged python, newest first
  sort by title and save the order
  remove duplicates

Requests stack on the current view until you reset it.
Commands: :reset  :confirm  :cancel  :quit"""

LEVEL_STYLES = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
}

REPL_COMMANDS = (":reset", ":confirm", ":cancel", ":quit", ":exit", ":help")


class ConsoleSideEffectHandler(SideEffectHandler):
    """Renders agent side effects on a rich console."""

    def __init__(self, console: Console):
        self.console = console

    def open_help(self) -> None:
        self.console.print(Panel(HELP_TEXT, title="Bookmark Agent", expand=False))

    def open_import_export(self, action: str) -> None:
        if action == "importBookmarks":
            hint = "Restart with --input FILE to import bookmarks (JSON or Netscape HTML)."
        else:
            hint = "Use --export FILE to export the current view (.json or .html)."
        self.console.print(f"[cyan]{hint}[/cyan]")

    def stage_deletions(self, bookmark_ids: List[str]) -> None:
        self.console.print(
            f"[yellow]{len(bookmark_ids)} bookmark(s) staged for deletion.[/yellow]"
        )

    def show_message(self, message: str, level: str = "info") -> None:
        style = LEVEL_STYLES.get(level, "white")
        self.console.print(f"[{style}]{message}[/{style}]")


def render_bookmarks(bookmarks: List[Bookmark], title: str = "Bookmarks") -> Table:
    """Build a table for a list of bookmarks."""
    table = Table(title=f"{title} ({len(bookmarks)})", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("URL", overflow="fold")
    table.add_column("Folder")
    table.add_column("Tags")
    table.add_column("Rating", justify="center")
    table.add_column("Status")

    for index, bookmark in enumerate(bookmarks, 1):
        table.add_row(
            str(index),
            bookmark.get_effective_title(),
            bookmark.url or "",
            bookmark.folder_id or "",
            ", ".join(bookmark.tags),
            "*" * bookmark.rating if bookmark.rating else "",
            bookmark.effective_status.value,
        )
    return table


class CLIInterface:
    """Command line interface for the bookmark agent."""

    def __init__(self, console: Optional[Console] = None):
        self.parser = self._create_parser()
        self.console = console or Console()
        self.logger = logging.getLogger(__name__)

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog="bookmark-agent",
            description="Bookmark Agent - browse and organize bookmarks in plain language",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  bookmark-agent --input bookmarks.html --query "top 3 javascript bookmarks"
  bookmark-agent --input bookmarks.json --provider ollama --model llama3
  bookmark-agent --store library.json --query "sort by title and save it"
  bookmark-agent --input bookmarks.json --query "remove duplicates" --persist
  bookmark-agent --input bookmarks.html --query "python" --export python.html

Configuration:
  Settings are read from bookmark_agent.toml (or --config FILE).
  Environment variables: GEMINI_API_KEY, OPENAI_API_KEY, XAI_API_KEY,
  BOOKMARK_AGENT_PROVIDER
            """,
        )

        parser.add_argument(
            "--version", "-V", action="version", version=f"%(prog)s {__version__}"
        )
        parser.add_argument(
            "--input",
            "-i",
            help="Bookmark file to load (JSON array or Netscape HTML)",
        )
        parser.add_argument(
            "--query",
            "-q",
            help="Request to run; starts an interactive session when omitted",
        )
        parser.add_argument(
            "--provider",
            "-p",
            choices=sorted(LLM_PROVIDERS),
            help="Language model provider (default: gemini)",
        )
        parser.add_argument("--model", "-m", help="Model name override")
        parser.add_argument("--base-url", help="Model server base URL override")
        parser.add_argument(
            "--config",
            "-c",
            help="Configuration file path (TOML or JSON)",
        )
        parser.add_argument(
            "--store",
            "-s",
            help="JSON file used as the bookmark store; --input is imported into it",
        )
        parser.add_argument(
            "--persist",
            action="store_true",
            help="Write the collection back to the --input file on exit",
        )
        parser.add_argument(
            "--export",
            "-e",
            help="Export the final view to a .json or .html file",
        )
        parser.add_argument(
            "--check-urls",
            action="store_true",
            default=None,
            help="Check URL reachability after loading",
        )
        parser.add_argument(
            "--no-stack",
            action="store_true",
            help="Replace the plan on every request instead of stacking",
        )
        parser.add_argument(
            "--yes",
            "-y",
            action="store_true",
            help="Delete staged duplicates without asking",
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable debug logging on the console",
        )
        return parser

    def parse_args(self, args=None) -> argparse.Namespace:
        """Parse command line arguments."""
        return self.parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """
        Check argument combinations.

        Raises:
            BookmarkAgentError: If the arguments cannot work together
        """
        if not args.input and not args.store:
            raise BookmarkAgentError("Either --input or --store is required")
        if args.input and not Path(args.input).is_file():
            raise BookmarkAgentError(f"Input file not found: {args.input}")
        if args.persist and not args.input:
            raise BookmarkAgentError("--persist needs an --input file to write back to")

    def load_config(self, args: argparse.Namespace) -> AppConfig:
        manager = ConfigurationManager(args.config)
        manager.update_from_cli_args(vars(args))
        return manager.config

    async def create_repository(self, args: argparse.Namespace, config: AppConfig):
        """Open the store and import the input file into it."""
        if args.store or config.storage.backend == "json" and not args.input:
            repository = JSONFileRepository(config.storage.path)
        else:
            repository = InMemoryRepository()
        await repository.init()

        if args.input:
            bookmarks = load_bookmarks(args.input)
            await repository.bulk_replace(bookmarks)
        return repository

    async def check_urls(self, repository, config: AppConfig) -> None:
        bookmarks = await repository.list()
        with URLChecker(timeout=config.agent.url_timeout) as checker:
            with self.console.status(f"Checking {len(bookmarks)} URLs..."):
                statuses = await asyncio.to_thread(checker.check_all, bookmarks)
        for bookmark_id, status in statuses.items():
            await repository.update(bookmark_id, status_patch(status))

    def show_result(self, result: AgentResult) -> None:
        if result.stale:
            return
        if result.plan:
            steps = " -> ".join(step.action for step in result.plan)
            self.console.print(f"[dim]Plan: {steps}[/dim]")
        self.console.print(render_bookmarks(result.view))

    async def handle_deletions(self, agent: AgentOrchestrator, assume_yes: bool) -> None:
        if not agent.pending_deletions:
            return
        if assume_yes or Confirm.ask(
            f"Delete {len(agent.pending_deletions)} duplicate bookmark(s)?",
            console=self.console,
        ):
            await agent.confirm_deletions()
            self.console.print(render_bookmarks(agent.derived_view()))
        else:
            agent.cancel_deletions()

    async def interactive(self, agent: AgentOrchestrator) -> None:
        """Read requests until :quit or end of input."""
        self.console.print(Panel(HELP_TEXT, title="Bookmark Agent", expand=False))
        self.console.print(render_bookmarks(agent.derived_view()))

        while True:
            try:
                line = self.console.input("[bold cyan]agent> [/bold cyan]").strip()
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                break

            if not line:
                continue
            if line in (":quit", ":exit"):
                break
            if line == ":help":
                self.console.print(Panel(HELP_TEXT, title="Bookmark Agent", expand=False))
            elif line == ":reset":
                agent.reset()
                self.console.print(render_bookmarks(agent.derived_view()))
            elif line == ":confirm":
                if agent.pending_deletions:
                    await agent.confirm_deletions()
                    self.console.print(render_bookmarks(agent.derived_view()))
                else:
                    self.console.print("[dim]Nothing staged for deletion.[/dim]")
            elif line == ":cancel":
                agent.cancel_deletions()
            elif line.startswith(":"):
                self.console.print(
                    f"[yellow]Unknown command {line}. Try one of: "
                    f"{', '.join(REPL_COMMANDS)}[/yellow]"
                )
            else:
                self.show_result(await agent.submit(line))

    async def run_async(self, args: argparse.Namespace, config: AppConfig) -> int:
        repository = await self.create_repository(args, config)
        if config.agent.check_urls:
            await self.check_urls(repository, config)

        handler = ConsoleSideEffectHandler(self.console)
        async with create_llm_from_config(config.llm) as client:
            agent = AgentOrchestrator(
                client,
                repository,
                handler=handler,
                stack_plans=config.agent.stack_plans,
            )
            await agent.refresh()
            agent.attach()
            try:
                if args.query:
                    result = await agent.submit(args.query)
                    self.show_result(result)
                    await self.handle_deletions(agent, args.yes)
                else:
                    await self.interactive(agent)
            finally:
                agent.detach()

            if args.export:
                path = save_bookmarks(agent.derived_view(), args.export)
                self.console.print(f"[green]Exported view to {path}[/green]")

        if args.persist:
            path = save_bookmarks(await repository.list(), args.input)
            self.console.print(f"[green]Saved collection to {path}[/green]")
        return 0

    def run(self, args=None) -> int:
        """Execute CLI interface."""
        try:
            parsed_args = self.parse_args(args)
            self.validate_args(parsed_args)
            config = self.load_config(parsed_args)

            setup_logging(config.log_level, console_output=parsed_args.verbose)
            self.logger.info("Bookmark Agent CLI starting")
            self.logger.info(f"Provider: {config.llm.provider}")

            return asyncio.run(self.run_async(parsed_args, config))

        except BookmarkAgentError as e:
            self.console.print(f"[bold red]Error:[/bold red] {e}")
            return 1
        except Exception as e:
            self.console.print(f"[bold red]Error:[/bold red] {e}")
            self.logger.exception("Unexpected error in CLI")
            return 1


def main(args=None):
    """Main entry point for the CLI."""
    cli = CLIInterface()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
