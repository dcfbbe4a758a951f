"""Shared utility functions for CLI commands."""

import asyncio
import logging
from typing import Optional

import typer

from convcommit.config import BACKEND_PRIORITY, BackendKind
from convcommit.llm import select_backend
from convcommit.llm_config import load_llm_config
from convcommit.session import CommitMessageSession, SessionResult, SessionState


def configure_logging(verbose: bool) -> None:
    """Send library debug logs to stderr when --verbose is given."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def parse_backend(name: str) -> BackendKind:
    """Convert a backend name from the command line to a BackendKind.

    Raises:
        typer.Exit: If the name is not a known backend.
    """
    try:
        return BackendKind(name.lower())
    except ValueError:
        typer.echo(f"Invalid backend: {name}", err=True)
        typer.echo(f"Valid backends: {', '.join(kind.value for kind in BACKEND_PRIORITY)}")
        raise typer.Exit(1)


def mask_key(api_key: str) -> str:
    return api_key[:8] + "..." + api_key[-4:] if len(api_key) > 12 else "***"


def prompt_confirm(message: str) -> bool:
    """Ask the operator whether to use a generated message."""
    typer.echo("", err=True)
    return typer.confirm(f"Confirm commit message: `{message}`?", default=True)


def accept_first(message: str) -> bool:
    typer.echo(f"Generated commit message: {message}", err=True)
    return True


class GenerationWatch:
    """Reports session progress and enforces a per-generation timeout.

    The timer is armed whenever a generation starts and disarmed once its
    output has been aggregated, so time spent at the confirmation prompt
    does not count.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self.cancel = asyncio.Event()
        self._handle: Optional[asyncio.TimerHandle] = None

    def on_state(self, state: SessionState) -> None:
        if state == SessionState.GENERATING:
            self.arm()
        elif state in (SessionState.PARSED, SessionState.PARSE_FAILED):
            self.disarm()

        if state == SessionState.PARSE_FAILED:
            typer.echo("Backend reply had no <Commit> tag.", err=True)
        elif state == SessionState.REGENERATING:
            typer.echo("Regenerating commit message...", err=True)

    def arm(self) -> None:
        self.disarm()
        self.cancel.clear()
        if self.timeout:
            loop = asyncio.get_running_loop()
            self._handle = loop.call_later(self.timeout, self.cancel.set)

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


async def _run(session: CommitMessageSession, diff: str, watch: GenerationWatch) -> SessionResult:
    try:
        return await session.run(diff, cancel=watch.cancel)
    finally:
        watch.disarm()


def run_session(diff: str, yes: bool = False, timeout: Optional[float] = None) -> SessionResult:
    """Load the config, pick a backend and run the confirm/retry loop.

    Args:
        diff: The staged changes.
        yes: Accept the first well-formed message without prompting.
        timeout: Seconds allowed per generation before it is cancelled.

    Returns:
        The accepted message and loop statistics.

    Raises:
        LLMError: For any fatal generation error.
    """
    config = load_llm_config()
    backend = select_backend(config)
    typer.echo(f"Generating commit message with {backend.name}...", err=True)

    watch = GenerationWatch(timeout)
    session = CommitMessageSession(
        backend,
        accept_first if yes else prompt_confirm,
        on_state=watch.on_state,
    )
    return asyncio.run(_run(session, diff, watch))
