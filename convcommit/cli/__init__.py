"""CLI entry point for convcommit.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

from typing import Optional

import typer

from convcommit import __version__
from convcommit.cli.config import config_app
from convcommit.cli.generate import commit_command, generate_command
from convcommit.cli.init import init_config

# Main application
app = typer.Typer(
    name="convcommit",
    help="convcommit: Conventional Commits messages from your staged changes",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(config_app, name="config")

# Add individual commands
app.command("init")(init_config)
app.command("generate")(generate_command)
app.command("commit")(commit_command)


@app.callback(invoke_without_command=True)
def main_command(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show the version and exit",
        is_eager=True,
    ),
) -> None:
    """Generate Conventional Commits messages with a local or hosted LLM."""
    if version:
        typer.echo(f"convcommit {__version__}")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


__all__ = [
    "app",
    "config_app",
    "init_config",
    "generate_command",
    "commit_command",
    "main_command",
]
