"""OpenAI GPT backend implementation."""

import asyncio
from typing import Optional

from openai import AsyncOpenAI

from convcommit.config import DEFAULT_MODELS, MAX_TOKENS, TEMPERATURE, BackendKind
from convcommit.llm.base import BaseBackend
from convcommit.llm.exceptions import BackendSetupError, LLMError
from convcommit.llm.stream import DeltaStream, single_delta, until_cancelled


class OpenAIProvider(BaseBackend):
    """OpenAI GPT backend. Replies arrive as one complete message."""

    kind = BackendKind.OPENAI
    display_name = "OpenAI"

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """Initialize the OpenAI backend.

        Args:
            model: The model to use. Defaults to gpt-4o.
            host: API base URL override (OpenAI-compatible servers).
            api_key: Configured API key.
        """
        super().__init__(
            model=model or DEFAULT_MODELS[BackendKind.OPENAI],
            host=host,
            api_key=api_key,
        )

    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        """Generate a commit message using OpenAI.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, abandons the request.

        Returns:
            A DeltaStream carrying the whole reply as its only delta.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            BackendSetupError: If the API call fails or returns no choices.
            StreamError: If cancel is set before the reply arrives.
        """
        api_key = self.get_api_key()

        try:
            async with AsyncOpenAI(api_key=api_key, base_url=self.host) as client:
                response = await until_cancelled(
                    client.chat.completions.create(
                        model=self.model,
                        max_tokens=MAX_TOKENS,
                        temperature=TEMPERATURE,
                        messages=[
                            {"role": "system", "content": self.system_prompt},
                            {"role": "user", "content": diff},
                        ],
                    ),
                    cancel,
                )
        except LLMError:
            raise
        except Exception as e:
            raise BackendSetupError(f"OpenAI API call failed: {e}") from e

        if not response.choices:
            raise BackendSetupError("OpenAI returned no choices in response")

        text = response.choices[0].message.content or ""

        # The reply is already complete, so there is nothing left to cancel
        return DeltaStream(single_delta(text))
