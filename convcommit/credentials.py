"""Per-user API key storage for convcommit.

Keys live in ~/.convcommit/credentials, one KEY=value pair per line,
readable by the owner only.
"""

import os
import stat
from pathlib import Path
from typing import Dict, Optional

from convcommit.llm.exceptions import LLMConfigError


_CREDENTIALS_DIR = Path.home() / ".convcommit"
_OWNER_ONLY = stat.S_IRUSR | stat.S_IWUSR


def get_credentials_dir() -> Path:
    """Get the per-user convcommit directory.

    Returns:
        Path to ~/.convcommit/
    """
    return _CREDENTIALS_DIR


def get_credentials_file_path() -> Path:
    """Get path to the credentials file.

    Returns:
        Path to ~/.convcommit/credentials
    """
    return get_credentials_dir() / "credentials"


def _parse_credentials(text: str) -> Dict[str, str]:
    credentials = {}
    for line in text.splitlines():
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            credentials[key.strip()] = value.strip()
    return credentials


def load_credentials() -> Dict[str, str]:
    """Load API keys from ~/.convcommit/credentials.

    Returns:
        Dictionary mapping environment variable names to API keys.
    """
    credentials_file = get_credentials_file_path()

    if not credentials_file.exists():
        return {}

    try:
        return _parse_credentials(credentials_file.read_text())
    except OSError as e:
        raise LLMConfigError(f"Failed to load credentials from {credentials_file}: {e}") from e


def save_credential(env_var: str, api_key: str) -> None:
    """Save or update an API key in the credentials file.

    Args:
        env_var: Environment variable name (e.g., "ANTHROPIC_API_KEY").
        api_key: The API key value.
    """
    credentials_file = get_credentials_file_path()
    credentials = load_credentials()
    credentials[env_var] = api_key

    try:
        credentials_file.parent.mkdir(parents=True, exist_ok=True)
        # Owner read/write only from the moment it exists
        fd = os.open(credentials_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _OWNER_ONLY)
        with os.fdopen(fd, "w") as f:
            # O_CREAT leaves the mode of an existing file unchanged
            os.fchmod(f.fileno(), _OWNER_ONLY)
            f.write("# convcommit API credentials\n")
            f.write("# Format: PROVIDER_API_KEY=your_key_here\n\n")
            for key, value in credentials.items():
                f.write(f"{key}={value}\n")
    except OSError as e:
        raise LLMConfigError(f"Failed to save credential: {e}") from e


def get_credential(env_var: str) -> Optional[str]:
    """Get an API key from the credentials file.

    Args:
        env_var: Environment variable name (e.g., "ANTHROPIC_API_KEY").

    Returns:
        The API key if found, None otherwise.
    """
    return load_credentials().get(env_var)
