"""LLM backend module for convcommit.

This module provides a single interface over several LLM backends and picks
the one to use from the project's backend configuration.
"""

import logging
from typing import TYPE_CHECKING, Optional

from dotenv import load_dotenv

from convcommit.config import BACKEND_PRIORITY, BackendKind
from convcommit.llm.base import BaseBackend
from convcommit.llm.exceptions import (
    BackendSetupError,
    ConfigMissingError,
    ExhaustedError,
    LLMConfigError,
    LLMError,
    MissingAPIKeyError,
    NoBackendEnabledError,
    StreamError,
    TagMissingError,
)
from convcommit.llm.parsing import parse_commit_message
from convcommit.llm.stream import DeltaStream, aggregate

if TYPE_CHECKING:
    from convcommit.llm_config import BackendSettings, LLMConfig

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def get_backend(kind: BackendKind, settings: Optional["BackendSettings"] = None) -> BaseBackend:
    """Construct a backend instance.

    Args:
        kind: The backend kind.
        settings: The backend's config record. Defaults are used when None.

    Returns:
        An instance of the matching backend.

    Raises:
        ValueError: If the backend kind is not supported.
    """
    options = {}
    if settings is not None:
        options = {"model": settings.model, "host": settings.host, "api_key": settings.api_key}

    if kind == BackendKind.OLLAMA:
        from convcommit.llm.ollama_provider import OllamaProvider

        return OllamaProvider(**options)

    elif kind == BackendKind.GEMINI:
        from convcommit.llm.google_provider import GoogleProvider

        return GoogleProvider(**options)

    elif kind == BackendKind.VERTEX:
        from convcommit.llm.vertex_provider import VertexProvider

        if settings is not None:
            options.update(location=settings.location, project=settings.project)
        return VertexProvider(**options)

    elif kind == BackendKind.ANTHROPIC:
        from convcommit.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(**options)

    elif kind == BackendKind.OPENAI:
        from convcommit.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(**options)

    else:
        raise ValueError(f"Unsupported backend: {kind}")


def select_backend(config: Optional["LLMConfig"]) -> BaseBackend:
    """Pick the first enabled backend in priority order.

    Args:
        config: The loaded configuration, or None if no config file exists.

    Returns:
        The backend built from the first enabled record.

    Raises:
        ConfigMissingError: If config is None.
        NoBackendEnabledError: If no backend is enabled.
    """
    if config is None:
        raise ConfigMissingError("No backend configuration found. Run 'convcommit init' to create one.")

    for kind in BACKEND_PRIORITY:
        settings = config.settings_for(kind)
        if settings.enabled:
            logger.debug("Selected backend: %s", kind.value)
            return get_backend(kind, settings)

    raise NoBackendEnabledError(
        "No backend is enabled. Enable one with: convcommit config enable <backend>"
    )


# Export commonly used items
__all__ = [
    "BaseBackend",
    "DeltaStream",
    "LLMError",
    "LLMConfigError",
    "ConfigMissingError",
    "NoBackendEnabledError",
    "BackendSetupError",
    "MissingAPIKeyError",
    "StreamError",
    "TagMissingError",
    "ExhaustedError",
    "aggregate",
    "get_backend",
    "parse_commit_message",
    "select_backend",
]
