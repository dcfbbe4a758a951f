"""LLM-related exception classes.

Fatal errors stop the commit flow immediately:
- ConfigMissingError: No config file; the operator must run 'convcommit init'
- NoBackendEnabledError: Config exists but every backend is disabled
- BackendSetupError: Auth or network failure before streaming began
- StreamError: Failure (or cancellation) while streaming

Recoverable:
- TagMissingError: Output lacks the <Commit> tag pair; triggers a retry

Terminal:
- ExhaustedError: Too many unparsable generations in a row
"""


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    pass


class LLMConfigError(LLMError):
    """Raised when the backend config file cannot be read or written."""

    pass


class ConfigMissingError(LLMConfigError):
    """Raised when no backend config file exists."""

    pass


class NoBackendEnabledError(LLMError):
    """Raised when the config has no enabled backend."""

    pass


class BackendSetupError(LLMError):
    """Raised when a backend request fails before any output is streamed."""

    pass


class MissingAPIKeyError(BackendSetupError):
    """Raised when the required API key is not set."""

    pass


class StreamError(LLMError):
    """Raised to the consumer when a stream fails after it was handed back."""

    def __init__(self, message: str, cancelled: bool = False):
        super().__init__(message)
        self.cancelled = cancelled


class TagMissingError(LLMError):
    """Raised when the output has no <Commit>...</Commit> pair."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class ExhaustedError(LLMError):
    """Raised when every allowed generation produced unparsable output."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts
