"""Command-line viewer for git-log-reader."""

import asyncio
import json
import logging
import sys
from typing import List, Optional, Tuple

import click
import structlog
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from git_log_reader.core.exceptions import GitLogError, ProcessFailure
from git_log_reader.core.reader import read_sync
from git_log_reader.models.commit import Commit
from git_log_reader.models.options import Options

console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Show library log events on stderr, debug events only when verbose."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer(key_order=["event"])]
    )
    logger = logging.getLogger("git_log_reader")
    logger.handlers = [RichHandler(console=error_console, show_path=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def render_table(commits: List[Commit], show_hash: bool) -> Table:
    """Build a rich table with one row per commit."""
    table = Table(title=f"{len(commits)} commits")
    if show_hash:
        table.add_column("Hash", style="cyan", no_wrap=True)
    table.add_column("Date", style="magenta", no_wrap=True)
    table.add_column("Subject", style="green")
    table.add_column("Body", style="white")

    for commit in commits:
        row = [
            commit.date.strftime("%Y-%m-%d %H:%M:%S %z"),
            escape(commit.subject),
            escape(commit.body),
        ]
        if show_hash:
            row.insert(0, (commit.hash or "")[:12])
        table.add_row(*row)

    return table


@click.command()
@click.version_option(package_name="git-log-reader")
@click.argument("paths", nargs=-1)
@click.option(
    "--repo",
    type=click.Path(file_okay=False),
    default=None,
    help="Path to the repository (defaults to the current directory)",
)
@click.option("--range", "rev_range", default="HEAD", help="Revision range to read")
@click.option("--merges", is_flag=True, help="Include merge commits")
@click.option("--hash", "include_hash", is_flag=True, help="Include commit hashes")
@click.option("--json", "as_json", is_flag=True, help="Print commits as JSON")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for git")
@click.option("--verbose", "-v", is_flag=True, help="Log git invocations to stderr")
def main(
    paths: Tuple[str, ...],
    repo: Optional[str],
    rev_range: str,
    merges: bool,
    include_hash: bool,
    as_json: bool,
    timeout: Optional[float],
    verbose: bool,
):
    """Show the commit history of a git repository.

    Optional PATHS restrict the history to commits touching them.
    """
    configure_logging(verbose)

    options = Options(
        merges=merges,
        range=rev_range,
        repo=repo,
        path=list(paths) or None,
        include_hash=include_hash,
    )

    try:
        commits = read_sync(options, timeout=timeout)
    except ProcessFailure as e:
        error_console.print(f"[red]Error: {escape(e.stderr.strip() or str(e))}[/red]")
        sys.exit(1)
    except GitLogError as e:
        error_console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except asyncio.TimeoutError:
        error_console.print(f"[red]Error: git did not finish within {timeout}s[/red]")
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                [commit.model_dump(mode="json", exclude_none=True) for commit in commits],
                indent=2,
            )
        )
        return

    if not commits:
        console.print("[yellow]No commits found[/yellow]")
        return

    console.print(render_table(commits, include_hash))


if __name__ == "__main__":
    main()
