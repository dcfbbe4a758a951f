"""CLI commands that generate a commit message from a diff."""

import sys
from pathlib import Path
from typing import Optional

import typer

from convcommit.cli.utils import configure_logging, run_session
from convcommit.git import GitError, commit_with_message, get_repo_root, get_staged_diff
from convcommit.llm import LLMError


def _read_diff(diff_file: Optional[Path]) -> str:
    if diff_file is None:
        return get_staged_diff()
    if str(diff_file) == "-":
        return sys.stdin.read()
    return diff_file.read_text()


def generate_command(
    diff_file: Optional[Path] = typer.Option(
        None,
        "--diff-file",
        "-f",
        help="Read the diff from a file ('-' for stdin) instead of the staged changes",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Accept the first well-formed message without asking",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Cancel a generation that takes longer than this many seconds",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logs",
    ),
) -> None:
    """Generate a Conventional Commits message and print it."""
    configure_logging(verbose)

    if diff_file is not None and str(diff_file) == "-" and not yes:
        typer.echo("Reading the diff from stdin requires --yes.", err=True)
        raise typer.Exit(1)

    try:
        diff = _read_diff(diff_file)
        if not diff.strip():
            typer.echo("The diff is empty, nothing to describe.", err=True)
            raise typer.Exit(1)

        result = run_session(diff, yes=yes, timeout=timeout)
    except (GitError, LLMError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nAborted.", err=True)
        raise typer.Exit(130)

    typer.echo(result.message)


def commit_command(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Commit with the first well-formed message without asking",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Cancel a generation that takes longer than this many seconds",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logs",
    ),
) -> None:
    """Generate a message for the staged changes and commit them."""
    configure_logging(verbose)

    try:
        get_repo_root()
        diff = get_staged_diff()
        result = run_session(diff, yes=yes, timeout=timeout)

        message = result.message.strip()
        typer.echo("Committing...", err=True)
        output = commit_with_message(message)
    except (GitError, LLMError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nAborted.", err=True)
        raise typer.Exit(130)

    typer.echo(output)
    typer.echo(f"Committed files with message: {message}", err=True)
