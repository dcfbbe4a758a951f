"""Google Gemini (consumer API) backend implementation."""

import asyncio
from typing import AsyncIterator, Optional

from google import genai
from google.genai import types

from convcommit.config import DEFAULT_MODELS, MAX_TOKENS, TEMPERATURE, BackendKind
from convcommit.llm.base import BaseBackend
from convcommit.llm.exceptions import BackendSetupError, LLMError
from convcommit.llm.stream import DeltaStream, until_cancelled


class GoogleProvider(BaseBackend):
    """Google Gemini backend, streamed chunk by chunk."""

    kind = BackendKind.GEMINI
    display_name = "Google Gemini"

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """Initialize the Google backend.

        Args:
            model: The model to use. Defaults to gemini-2.0-flash.
            host: API base URL override.
            api_key: Configured API key.
        """
        super().__init__(
            model=model or DEFAULT_MODELS[self.kind],
            host=host,
            api_key=api_key,
        )

    def _http_options(self) -> Optional[types.HttpOptions]:
        if not self.host:
            return None
        return types.HttpOptions(base_url=self.host)

    def create_client(self) -> genai.Client:
        """Create the SDK client for the consumer Gemini API."""
        return genai.Client(api_key=self.get_api_key(), http_options=self._http_options())

    def build_generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=self.system_prompt,
            temperature=TEMPERATURE,
            max_output_tokens=MAX_TOKENS,
        )

    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        """Generate a commit message using Gemini.

        The SDK only sends the request once the response is iterated, so the
        first chunk is fetched here to report setup failures before returning.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, stops the stream.

        Returns:
            A DeltaStream with one delta per non-empty response chunk.

        Raises:
            MissingAPIKeyError: If no credentials are configured.
            BackendSetupError: If the request fails.
            StreamError: If cancel is set before the first chunk arrives.
        """
        try:
            client = self.create_client()
            first_chunk, response_stream = await until_cancelled(
                self._open_stream(client, diff), cancel
            )
        except LLMError:
            raise
        except Exception as e:
            raise BackendSetupError(f"{self.display_name} API call failed: {e}") from e

        return DeltaStream(self._iter_deltas(first_chunk, response_stream), cancel=cancel)

    async def _open_stream(
        self,
        client: genai.Client,
        diff: str,
    ) -> tuple[Optional[types.GenerateContentResponse], AsyncIterator[types.GenerateContentResponse]]:
        response_stream = await client.aio.models.generate_content_stream(
            model=self.model,
            contents=diff,
            config=self.build_generation_config(),
        )
        try:
            first_chunk = await anext(response_stream)
        except StopAsyncIteration:
            first_chunk = None
        except BaseException:
            aclose = getattr(response_stream, "aclose", None)
            if aclose is not None:
                await aclose()
            raise
        return first_chunk, response_stream

    async def _iter_deltas(
        self,
        first_chunk: Optional[types.GenerateContentResponse],
        response_stream: AsyncIterator[types.GenerateContentResponse],
    ) -> AsyncIterator[str]:
        try:
            if first_chunk is not None and first_chunk.text:
                yield first_chunk.text
            async for chunk in response_stream:
                # Chunks without text (e.g. final usage metadata) are skipped
                if chunk.text:
                    yield chunk.text
        finally:
            aclose = getattr(response_stream, "aclose", None)
            if aclose is not None:
                await aclose()
