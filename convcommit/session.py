"""Confirm/retry loop for commit message generation.

A session asks one backend for a message, shows the parsed result to the
operator and regenerates until the operator accepts it:

    GENERATING -> PARSED -> AWAITING_CONFIRMATION -> ACCEPTED
                                                  -> REGENERATING -> GENERATING
    GENERATING -> PARSE_FAILED -> REGENERATING -> GENERATING
                               -> EXHAUSTED

Only unparsable output counts against the attempt budget. An operator
rejecting a well-formed message regenerates without consuming it.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from convcommit.config import MAX_PARSE_FAILURES
from convcommit.llm import (
    BaseBackend,
    ExhaustedError,
    TagMissingError,
    aggregate,
    parse_commit_message,
    select_backend,
)
from convcommit.llm_config import LLMConfig

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


class SessionState(Enum):
    """States of the confirm/retry loop."""

    GENERATING = "generating"
    PARSED = "parsed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    ACCEPTED = "accepted"
    REGENERATING = "regenerating"
    PARSE_FAILED = "parse_failed"
    EXHAUSTED = "exhausted"


@dataclass
class SessionResult:
    """Outcome of a session that ended with an accepted message."""

    message: str
    backend: str
    generations: int
    parse_failures: int
    rejections: int


class CommitMessageSession:
    """Runs the generate / parse / confirm loop against one backend.

    Errors from the backend or its stream are fatal and propagate unchanged.
    Parse failures are retried until ``max_parse_failures`` is reached.
    """

    def __init__(
        self,
        backend: BaseBackend,
        confirm: ConfirmCallback,
        max_parse_failures: int = MAX_PARSE_FAILURES,
        on_state: Optional[Callable[[SessionState], None]] = None,
    ):
        """Initialize the session.

        Args:
            backend: The backend used for every generation.
            confirm: Called with each parsed message; returns True to accept.
            max_parse_failures: Unparsable generations tolerated before giving up.
            on_state: Called on every state transition.
        """
        self.backend = backend
        self.confirm = confirm
        self.max_parse_failures = max_parse_failures
        self.on_state = on_state

        self.state = SessionState.GENERATING
        self.generations = 0
        self.parse_failures = 0
        self.rejections = 0

    def _transition(self, state: SessionState) -> None:
        logger.debug("Session state: %s -> %s", self.state.value, state.value)
        self.state = state
        if self.on_state is not None:
            self.on_state(state)

    async def _ask_operator(self, message: str) -> bool:
        answer = self.confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def run(self, diff: str, cancel: Optional[asyncio.Event] = None) -> SessionResult:
        """Generate messages until one is accepted.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, aborts the current generation.

        Returns:
            The accepted message and loop statistics.

        Raises:
            ExhaustedError: If max_parse_failures generations could not be parsed.
            BackendSetupError: If a generation could not be started.
            StreamError: If a generation failed or was cancelled mid-stream.
        """
        self._transition(SessionState.GENERATING)

        while True:
            self.generations += 1
            stream = await self.backend.generate(diff, cancel=cancel)
            raw_response = await aggregate(stream)

            try:
                message = parse_commit_message(raw_response)
            except TagMissingError as e:
                self.parse_failures += 1
                self._transition(SessionState.PARSE_FAILED)
                logger.warning(
                    "Could not parse backend output (%d/%d): %s",
                    self.parse_failures,
                    self.max_parse_failures,
                    e,
                )
                if self.parse_failures >= self.max_parse_failures:
                    self._transition(SessionState.EXHAUSTED)
                    raise ExhaustedError(
                        f"Gave up after {self.parse_failures} unparsable responses from "
                        f"{self.backend.name}: {e}",
                        attempts=self.parse_failures,
                    ) from e
                self._transition(SessionState.REGENERATING)
                self._transition(SessionState.GENERATING)
                continue

            self._transition(SessionState.PARSED)
            self._transition(SessionState.AWAITING_CONFIRMATION)

            if await self._ask_operator(message):
                self._transition(SessionState.ACCEPTED)
                return SessionResult(
                    message=message,
                    backend=self.backend.name,
                    generations=self.generations,
                    parse_failures=self.parse_failures,
                    rejections=self.rejections,
                )

            self.rejections += 1
            logger.info("Retrying commit message generation...")
            self._transition(SessionState.REGENERATING)
            self._transition(SessionState.GENERATING)


async def generate_commit_message(
    config: Optional[LLMConfig],
    diff: str,
    confirm: ConfirmCallback,
    cancel: Optional[asyncio.Event] = None,
) -> str:
    """Select a backend from config and run a session on a diff.

    Args:
        config: The loaded configuration, or None if no config file exists.
        diff: The staged changes.
        confirm: Called with each parsed message; returns True to accept.
        cancel: Event that, once set, aborts the current generation.

    Returns:
        The accepted commit message.
    """
    backend = select_backend(config)
    session = CommitMessageSession(backend, confirm)
    result = await session.run(diff, cancel=cancel)
    return result.message
