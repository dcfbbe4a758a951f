"""Base class and shared helpers for LLM backends."""

import asyncio
import os
from abc import ABC, abstractmethod
from typing import Optional

from convcommit.config import BackendKind, get_api_key_env_var
from convcommit.llm.exceptions import MissingAPIKeyError
from convcommit.llm.prompts import SYSTEM_PROMPT
from convcommit.llm.stream import DeltaStream


class BaseBackend(ABC):
    """Abstract base class for commit message backends.

    Subclasses set ``kind`` and ``display_name`` and implement generate().
    """

    kind: BackendKind
    display_name: str

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """Initialize the backend.

        Args:
            model: The model to use. Each backend has its own default.
            host: Endpoint override.
            api_key: Configured credentials; see get_api_key() for fallbacks.
        """
        self.model = model
        self.host = host
        self.api_key = api_key
        self.system_prompt = SYSTEM_PROMPT

    @property
    def name(self) -> str:
        return f"{self.display_name} ({self.model})"

    @abstractmethod
    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        """Start generating a commit message for a diff.

        The request is set up before this returns, so authentication and
        connection failures are raised here rather than from the stream.
        The cancel event is honoured during setup as well as while streaming.

        Args:
            diff: The staged changes.
            cancel: Event that, once set, abandons the request or stops the stream.

        Returns:
            A DeltaStream of the backend's raw output.

        Raises:
            MissingAPIKeyError: If the API key is not set.
            BackendSetupError: If the request could not be started.
            StreamError: With cancelled=True if cancel is set during setup.
        """
        pass

    def get_api_key(self) -> str:
        """Get the API key for this backend.

        Checks in order:
        1. The api_key from the config file
        2. Environment variable (including a loaded .env file)
        3. ~/.convcommit/credentials file

        Returns:
            The API key string.

        Raises:
            MissingAPIKeyError: If the API key is not found.
        """
        if self.api_key:
            return self.api_key

        env_var_name = get_api_key_env_var(self.kind)
        api_key = os.getenv(env_var_name)
        if api_key:
            return api_key

        from convcommit.credentials import get_credential

        api_key = get_credential(env_var_name)
        if api_key:
            return api_key

        raise MissingAPIKeyError(
            f"{self.display_name} API key not found. Set it using:\n"
            f"  1. api_key under '{self.kind.value}' in .convcommit/llm.config.yaml\n"
            f"  2. Environment variable: export {env_var_name}=your_key_here\n"
            f"  3. Run: convcommit config set-key {self.kind.value}"
        )
