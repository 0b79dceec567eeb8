"""Command-line interface: ``granola <group> <command>``."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import click
from loguru import logger
from pydantic import ValidationError

from . import __version__
from .auth import read_user_info
from .cache import get_cache_meta
from .config import LOG_LEVELS, Config
from .errors import (
    EXIT_ERROR,
    EXIT_INVALID,
    ConfigurationError,
    GranolaError,
    NotFoundError,
)
from .format import (
    format_export,
    format_folders,
    format_meeting,
    format_meeting_list,
    format_people,
    format_summary,
    format_transcript,
    format_workspaces,
)
from .output import OutputFormat, print_json, print_text, resolve_output_format
from .resolve import Resolver, SourceMode
from .types import ListOptions, Meeting

T = TypeVar("T")

LOG_FORMAT = (
    "<level>{level: <8}</level> | <cyan>{name}</cyan> | <level>{message}</level>"
)


def setup_logging(level: str) -> None:
    """Send log records at *level* and above to stderr."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())


def load_config() -> Config:
    try:
        return Config()
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(
            f"Invalid configuration: {field}: {first['msg']}"
        ) from None


@dataclass
class AppContext:
    config: Config
    mode: SourceMode
    output: OutputFormat
    jsonl: bool = False

    def run(
        self,
        handler: Callable[[Resolver], Awaitable[T]],
        mode: SourceMode | None = None,
    ) -> T:
        """Run one command against a freshly built resolver."""

        async def _main() -> T:
            resolver = Resolver.from_config(self.config, mode or self.mode)
            try:
                return await handler(resolver)
            finally:
                await resolver.aclose()

        return asyncio.run(_main())

    def emit_meetings(self, meetings: list[Meeting]) -> None:
        if self.output == "json":
            print_json(meetings, self.jsonl)
        else:
            print_text(format_meeting_list(meetings))


pass_app = click.make_pass_decorator(AppContext)


@click.group()
@click.version_option(version=__version__)
@click.option("-o", "--output", default=None, help="Output format (json, markdown)")
@click.option("--jsonl", is_flag=True, help="Output JSON Lines for lists")
@click.option("--source", default="auto", help="Source mode: auto, api, cache")
@click.option("--no-network", is_flag=True, help="Disable network access (force cache)")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (default: warning)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    output: str | None,
    jsonl: bool,
    source: str,
    no_network: bool,
    log_level: str | None,
):
    """Unix-like CLI for Granola meetings."""
    config = load_config()
    setup_logging(log_level or config.log_level)
    mode = SourceMode.parse(source, no_network)
    logger.debug("Source mode: {}", mode.value)
    ctx.obj = AppContext(
        config=config,
        mode=mode,
        output=resolve_output_format(output),
        jsonl=jsonl,
    )


# ---------------------------------------------------------------------------
# meeting
# ---------------------------------------------------------------------------


@cli.group()
def meeting():
    """Meeting operations."""


@meeting.command("list")
@click.option(
    "--limit", default=20, type=click.IntRange(min=0), help="Limit results"
)
@click.option("--workspace", default=None, help="Filter by workspace id")
@click.option("--folder", default=None, help="Filter by folder id or name")
@click.option("--attendee", default=None, help="Filter by attendee name or email")
@click.option("--since", default=None, help="Filter from date (ISO)")
@click.option("--until", default=None, help="Filter until date (ISO)")
@pass_app
def meeting_list(app: AppContext, limit, workspace, folder, attendee, since, until):
    """List meetings."""
    options = ListOptions(
        limit=limit,
        workspace=workspace,
        folder=folder,
        attendee=attendee,
        since=since,
        until=until,
    )
    app.emit_meetings(app.run(lambda r: r.list_meetings(options)))


@meeting.command("search")
@click.argument("query")
@click.option(
    "--limit", default=20, type=click.IntRange(min=0), help="Limit results"
)
@pass_app
def meeting_search(app: AppContext, query: str, limit: int):
    """Search meetings by title or notes."""
    options = ListOptions(limit=limit, query=query)
    app.emit_meetings(app.run(lambda r: r.list_meetings(options)))


async def _detail(resolver: Resolver, query: str, **parts: bool):
    meeting_id = await resolver.resolve_meeting_id(query)
    return await resolver.get_meeting_detail(meeting_id, query=query, **parts)


@meeting.command("view")
@click.argument("query", metavar="ID|TITLE")
@pass_app
def meeting_view(app: AppContext, query: str):
    """View meeting details."""
    detail = app.run(lambda r: _detail(r, query, transcript=False))
    summary = format_summary(detail.summary)

    if app.output == "json":
        print_json({"document": detail.meeting, "notes": detail.notes, "summary": summary})
        return
    print_text(format_meeting(detail.meeting, detail.notes, summary))


@meeting.command("notes")
@click.argument("query", metavar="ID|TITLE")
@pass_app
def meeting_notes(app: AppContext, query: str):
    """Show manual notes."""
    detail = app.run(lambda r: _detail(r, query, summary=False, transcript=False))

    if app.output == "json":
        print_json({"id": detail.meeting.id, "notes": detail.notes})
        return
    print_text(detail.notes or "(No notes)")


@meeting.command("enhanced")
@click.argument("query", metavar="ID|TITLE")
@pass_app
def meeting_enhanced(app: AppContext, query: str):
    """Show the AI-generated summary."""
    detail = app.run(lambda r: _detail(r, query, transcript=False))
    summary = format_summary(detail.summary)
    if summary is None:
        raise NotFoundError(f"No summary available for: {query}")

    if app.output == "json":
        print_json({"id": detail.meeting.id, "summary": summary})
        return
    print_text(summary)


@meeting.command("transcript")
@click.argument("query", metavar="ID|TITLE")
@pass_app
def meeting_transcript(app: AppContext, query: str):
    """Show the meeting transcript."""
    detail = app.run(lambda r: _detail(r, query, summary=False))
    if not detail.transcript:
        raise NotFoundError(f"No transcript available for: {query}")
    transcript = format_transcript(detail.transcript)

    if app.output == "json":
        print_json({"id": detail.meeting.id, "transcript": transcript})
        return
    print_text(transcript)


@meeting.command("export")
@click.argument("query", metavar="ID|TITLE")
@pass_app
def meeting_export(app: AppContext, query: str):
    """Export summary and transcript as Markdown."""
    detail = app.run(lambda r: _detail(r, query))
    transcript = format_transcript(detail.transcript) if detail.transcript else None
    print_text(format_export(detail.meeting, format_summary(detail.summary), transcript))


# ---------------------------------------------------------------------------
# workspace / folder / people
# ---------------------------------------------------------------------------


@cli.group()
def workspace():
    """Workspace operations."""


@workspace.command("list")
@pass_app
def workspace_list(app: AppContext):
    """List workspaces."""
    workspaces = app.run(lambda r: r.list_workspaces())
    if app.output == "json":
        print_json(workspaces, app.jsonl)
        return
    print_text(format_workspaces(workspaces))


@cli.group()
def folder():
    """Folder operations."""


@folder.command("list")
@pass_app
def folder_list(app: AppContext):
    """List folders."""
    folders = app.run(lambda r: r.list_folders())
    if app.output == "json":
        print_json(folders, app.jsonl)
        return
    print_text(format_folders(folders))


@folder.command("view")
@click.argument("query", metavar="ID|NAME")
@pass_app
def folder_view(app: AppContext, query: str):
    """View folder contents."""

    async def _handler(resolver: Resolver) -> list[Meeting]:
        target = await resolver.get_folder(query)
        return await resolver.list_meetings(ListOptions(limit=200, folder=target.id))

    app.emit_meetings(app.run(_handler))


@cli.group()
def people():
    """People operations."""


@people.command("list")
@pass_app
def people_list(app: AppContext):
    """List people."""
    found = app.run(lambda r: r.list_people())
    if app.output == "json":
        print_json(found, app.jsonl)
        return
    print_text(format_people(found))


@people.command("search")
@click.argument("query")
@pass_app
def people_search(app: AppContext, query: str):
    """Search people by name or email."""
    found = app.run(lambda r: r.list_people(query))
    if app.output == "json":
        print_json(found, app.jsonl)
        return
    print_text(format_people(found))


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


@cli.command()
@pass_app
def whoami(app: AppContext):
    """Show current user info."""
    info = read_user_info(app.config.credentials_path)
    if app.output == "json":
        print_json(info or {})
        return
    if not info:
        print_text("No user info available.")
        return
    meta = info.get("user_metadata") or {}
    name = meta.get("name") or info.get("name") or "Unknown"
    email = info.get("email") or "Unknown"
    print_text(f"Name: {name}\nEmail: {email}")


@cli.command()
@pass_app
def sync(app: AppContext):
    """Ask Granola to refresh its data upstream."""

    async def _handler(resolver: Resolver) -> None:
        await resolver.require_client().trigger_sync()

    app.run(_handler)
    print_text("Sync requested.")


@cli.command("cache")
@pass_app
def cache_status(app: AppContext):
    """Show cache status."""
    print_json(get_cache_meta(app.config.cache_path))


@cli.command()
@pass_app
def shared(app: AppContext):
    """List shared documents (cache only)."""

    async def _handler(resolver: Resolver) -> list[Meeting]:
        return resolver.list_shared()

    app.emit_meetings(app.run(_handler, mode=SourceMode.CACHE))


def main(argv: list[str] | None = None) -> None:
    """Console entry point; maps errors onto exit codes."""
    try:
        cli.main(args=argv, prog_name="granola", standalone_mode=False)
    except GranolaError as e:
        click.echo(str(e), err=True)
        sys.exit(e.exit_code)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(EXIT_ERROR)
    except click.UsageError as e:
        e.show()
        sys.exit(EXIT_INVALID)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        click.echo(str(e) or e.__class__.__name__, err=True)
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
