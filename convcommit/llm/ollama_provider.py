"""Ollama (local inference) backend implementation."""

import asyncio
import json
from typing import AsyncIterator, Optional

import httpx

from convcommit.config import (
    DEFAULT_MODELS,
    DEFAULT_OLLAMA_HOST,
    OLLAMA_TIMEOUT,
    TEMPERATURE,
    BackendKind,
)
from convcommit.llm.base import BaseBackend
from convcommit.llm.exceptions import BackendSetupError, LLMError
from convcommit.llm.stream import DeltaStream, until_cancelled


class OllamaProvider(BaseBackend):
    """Backend for a local Ollama server, streamed token by token."""

    kind = BackendKind.OLLAMA
    display_name = "Ollama"

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Ollama backend.

        Args:
            model: The model to use. Defaults to gemma3:4b.
            host: Server URL. Defaults to http://localhost:11434.
            api_key: Unused; a local server needs no credentials.
            transport: Custom httpx transport.
        """
        super().__init__(
            model=model or DEFAULT_MODELS[BackendKind.OLLAMA],
            host=host or DEFAULT_OLLAMA_HOST,
            api_key=api_key,
        )
        self.transport = transport

    def build_payload(self, diff: str) -> dict:
        return {
            "model": self.model,
            "stream": True,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": diff},
            ],
            "options": {"temperature": TEMPERATURE},
        }

    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        """Generate a commit message using a local Ollama model.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, stops the stream.

        Returns:
            A DeltaStream with one delta per chunk of the chat response.

        Raises:
            BackendSetupError: If the server is unreachable or rejects the request.
            StreamError: If cancel is set before the server answers.
        """
        client = httpx.AsyncClient(
            base_url=self.host,
            timeout=httpx.Timeout(OLLAMA_TIMEOUT, read=None),
            transport=self.transport,
        )

        try:
            request = client.build_request("POST", "/api/chat", json=self.build_payload(diff))
            response = await until_cancelled(client.send(request, stream=True), cancel)
        except httpx.HTTPError as e:
            await client.aclose()
            raise BackendSetupError(
                f"Ollama request to {self.host} failed: {e}\n"
                f"Is the server running? Start it with: ollama serve"
            ) from e
        except BaseException:
            await client.aclose()
            raise

        if response.status_code != 200:
            try:
                body = await until_cancelled(response.aread(), cancel)
            finally:
                await response.aclose()
                await client.aclose()
            raise BackendSetupError(
                f"Ollama returned HTTP {response.status_code}: "
                f"{body.decode('utf-8', errors='replace').strip()}"
            )

        return DeltaStream(self._iter_deltas(client, response), cancel=cancel)

    async def _iter_deltas(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
    ) -> AsyncIterator[str]:
        # Ollama streams one JSON object per line until "done" is true
        try:
            async for line in response.aiter_lines():
                if not line.strip():
                    continue

                chunk = json.loads(line)
                if chunk.get("error"):
                    raise LLMError(f"Ollama error: {chunk['error']}")
                if chunk.get("done"):
                    break

                content = chunk.get("message", {}).get("content", "")
                if content:
                    yield content
        finally:
            await response.aclose()
            await client.aclose()
