"""Anthropic Claude backend implementation."""

import asyncio
from typing import Optional

from anthropic import AsyncAnthropic

from convcommit.config import DEFAULT_MODELS, MAX_TOKENS, BackendKind
from convcommit.llm.base import BaseBackend
from convcommit.llm.exceptions import BackendSetupError, LLMError
from convcommit.llm.stream import DeltaStream, single_delta, until_cancelled


class AnthropicProvider(BaseBackend):
    """Anthropic Claude backend. Replies arrive as one complete message."""

    kind = BackendKind.ANTHROPIC
    display_name = "Anthropic"

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """Initialize the Anthropic backend.

        Args:
            model: The model to use. Defaults to claude-sonnet-4-20250514.
            host: API base URL override.
            api_key: Configured API key.
        """
        super().__init__(
            model=model or DEFAULT_MODELS[BackendKind.ANTHROPIC],
            host=host,
            api_key=api_key,
        )

    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        """Generate a commit message using Anthropic Claude.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, abandons the request.

        Returns:
            A DeltaStream carrying the whole reply as its only delta.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            BackendSetupError: If the API call fails.
            StreamError: If cancel is set before the reply arrives.
        """
        api_key = self.get_api_key()

        try:
            async with AsyncAnthropic(api_key=api_key, base_url=self.host) as client:
                message = await until_cancelled(
                    client.messages.create(
                        model=self.model,
                        max_tokens=MAX_TOKENS,
                        system=self.system_prompt,
                        messages=[{"role": "user", "content": diff}],
                    ),
                    cancel,
                )
        except LLMError:
            raise
        except Exception as e:
            raise BackendSetupError(f"Anthropic API call failed: {e}") from e

        # Only text blocks carry the answer
        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )

        # The reply is already complete, so there is nothing left to cancel
        return DeltaStream(single_delta(text))
