"""Static configuration for convcommit LLM backends.

Per-project backend settings live in .convcommit/llm.config.yaml and are
handled by convcommit.llm_config. This module only holds the fixed values:
backend kinds and their priority, defaults, known models and limits.
"""

from enum import Enum


class BackendKind(Enum):
    """Supported LLM backends."""

    OLLAMA = "ollama"
    GEMINI = "gemini"
    VERTEX = "vertex"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


# First enabled backend in this order is the one used
BACKEND_PRIORITY = (
    BackendKind.OLLAMA,
    BackendKind.GEMINI,
    BackendKind.VERTEX,
    BackendKind.ANTHROPIC,
    BackendKind.OPENAI,
)


# ============================================================
# CONFIG FILE LOCATION
# ============================================================

CONFIG_DIR_NAME = ".convcommit"
CONFIG_FILE_NAME = "llm.config.yaml"
CONFIG_PATH_ENV_VAR = "CONVCOMMIT_CONFIG"


# ============================================================
# DEFAULT VALUES
# ============================================================

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "gemma3:4b"

DEFAULT_MODELS = {
    BackendKind.OLLAMA: DEFAULT_OLLAMA_MODEL,
    BackendKind.GEMINI: "gemini-2.0-flash",
    BackendKind.VERTEX: "gemini-2.0-flash",
    BackendKind.ANTHROPIC: "claude-sonnet-4-20250514",
    BackendKind.OPENAI: "gpt-4o",
}

MAX_TOKENS = 1024
TEMPERATURE = 0.75

# Seconds allowed for the local server to answer the initial request
OLLAMA_TIMEOUT = 30.0


# ============================================================
# GENERATION LIMITS
# ============================================================

# Unparsable generations tolerated before giving up
MAX_PARSE_FAILURES = 3

# Capacity of the hand-off queue between a backend and the aggregator
STREAM_QUEUE_SIZE = 1024


# ============================================================
# AVAILABLE MODELS PER BACKEND
# ============================================================

AVAILABLE_MODELS = {
    BackendKind.OLLAMA: [
        "gemma3:4b",
        "gemma3:12b",
        "llama3.2",
        "qwen2.5-coder:7b",
        "mistral:7b",
    ],
    BackendKind.GEMINI: [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    ],
    BackendKind.VERTEX: [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.0-flash",
    ],
    BackendKind.ANTHROPIC: [
        "claude-sonnet-4-20250514",
        "claude-3-5-sonnet-latest",
        "claude-3-5-haiku-latest",
    ],
    BackendKind.OPENAI: [
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4o",
        "gpt-4o-mini",
    ],
}


# ============================================================
# API KEY ENVIRONMENT VARIABLES
# ============================================================

API_KEY_ENV_VARS = {
    BackendKind.GEMINI: "GOOGLE_API_KEY",
    BackendKind.VERTEX: "GOOGLE_API_KEY",
    BackendKind.ANTHROPIC: "ANTHROPIC_API_KEY",
    BackendKind.OPENAI: "OPENAI_API_KEY",
}


def get_api_key_env_var(kind: BackendKind) -> str | None:
    """Get the environment variable name for a backend's API key.

    Args:
        kind: The backend kind.

    Returns:
        The environment variable name, or None for backends without keys.
    """
    return API_KEY_ENV_VARS.get(kind)
