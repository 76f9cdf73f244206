"""Command line interface for lopper."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from lopper import __version__
from lopper.git import PROTECTED_BRANCHES, GitError, GitRepo, InvalidEncodingError, collect_branches
from lopper.terminal import Terminal, raw_mode
from lopper.triage import InvalidInputError, announce, triage

app = typer.Typer(help="Interactively keep or delete git branches, one keystroke at a time")
console = Console()
err_console = Console(stderr=True)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        err_console.print(f"[red]Error:[/red] {escape(str(err))}", highlight=False)
        raise typer.Exit(code=1) from err


def configure_logging(verbose: bool) -> None:
    """Send debug diagnostics to stderr when asked for."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def version_callback(value: bool) -> None:
    if value:
        console.print(f"lopper {__version__}")
        raise typer.Exit()


@app.command()
def main(
    filter_in: Annotated[
        Optional[str],
        typer.Option("--filter", "-f", help="Only include branches whose name contains this text"),
    ] = None,
    local_only: Annotated[bool, typer.Option("--local-only", "-l", help="Only include local branches")] = False,
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Print debug diagnostics to stderr")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show the version and exit"),
    ] = None,
) -> None:
    """Walk through branches oldest first and keep, delete or quit."""
    configure_logging(verbose)
    repo = get_repo(path)
    terminal = Terminal(console=console, stdin=sys.stdin.buffer)

    try:
        branches = collect_branches(repo, PROTECTED_BRANCHES, filter_in, local_only)
        with raw_mode(sys.stdin):
            announce(terminal, branches, PROTECTED_BRANCHES)
            summary = triage(repo, branches, terminal)
    except (GitError, InvalidEncodingError, InvalidInputError, OSError) as err:
        err_console.print(f"[red]Error:[/red] {escape(str(err))}", highlight=False)
        raise typer.Exit(code=1) from err

    if summary.deleted:
        console.print(
            f"Deleted {len(summary.deleted)} branch(es): {escape(', '.join(summary.deleted))}",
            highlight=False,
        )
    if summary.total:
        console.print(summary.tally(), style="yellow", markup=False, highlight=False)


if __name__ == "__main__":
    app()
