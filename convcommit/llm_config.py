"""Backend configuration store for convcommit.

Handles the per-project .convcommit/llm.config.yaml file, which holds one
record per backend kind:

    ollama:
      enabled: true
      host: http://localhost:11434
      model: gemma3:4b
    vertex:
      enabled: false
      model: gemini-2.0-flash
      location: us-central1
      project: my-project

The file is read once at startup into an LLMConfig value. It is only
written by explicit setup commands, always as a whole and atomically.
"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from convcommit.config import (
    BACKEND_PRIORITY,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    CONFIG_PATH_ENV_VAR,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_OLLAMA_MODEL,
    BackendKind,
)
from convcommit.llm.exceptions import ConfigMissingError, LLMConfigError


class BackendSettings(BaseModel):
    """Settings for one backend kind.

    Attributes:
        enabled: Whether the backend may be selected.
        host: Endpoint override (server URL for ollama, base URL for hosted APIs).
        model: Model name; the backend's default is used when unset.
        api_key: Credentials; falls back to the environment and credentials file.
        location: Vertex AI region.
        project: Vertex AI project.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = Field(default=False, validation_alias=AliasChoices("enabled", "enable"))
    host: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    location: Optional[str] = None
    project: Optional[str] = None


class LLMConfig(BaseModel):
    """All backend records, keyed by backend kind."""

    model_config = ConfigDict(extra="ignore")

    ollama: BackendSettings = Field(default_factory=BackendSettings)
    gemini: BackendSettings = Field(default_factory=BackendSettings)
    vertex: BackendSettings = Field(default_factory=BackendSettings)
    anthropic: BackendSettings = Field(default_factory=BackendSettings)
    openai: BackendSettings = Field(default_factory=BackendSettings)

    def settings_for(self, kind: BackendKind) -> BackendSettings:
        """Return the record for a backend kind."""
        return getattr(self, kind.value)

    def enabled_backends(self) -> list[BackendKind]:
        """Return enabled backend kinds in priority order."""
        return [kind for kind in BACKEND_PRIORITY if self.settings_for(kind).enabled]


def get_config_file_path(root: Optional[Path] = None) -> Path:
    """Get path to the backend config file.

    Args:
        root: Project directory. Defaults to the current working directory.

    Returns:
        $CONVCOMMIT_CONFIG if set, else <root>/.convcommit/llm.config.yaml
    """
    override = os.environ.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override)
    return (root or Path.cwd()) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def is_configured(path: Optional[Path] = None) -> bool:
    """Check if a backend config file exists.

    Args:
        path: Config file path. Defaults to get_config_file_path().

    Returns:
        True if the config file exists, False otherwise.
    """
    return (path or get_config_file_path()).exists()


def load_llm_config(path: Optional[Path] = None) -> LLMConfig:
    """Load the backend configuration.

    Args:
        path: Config file path. Defaults to get_config_file_path().

    Returns:
        The validated LLMConfig.

    Raises:
        ConfigMissingError: If the file does not exist.
        LLMConfigError: If the file cannot be read or does not match the schema.
    """
    config_file = path or get_config_file_path()

    if not config_file.exists():
        raise ConfigMissingError(
            f"No backend configuration found at {config_file}.\n"
            f"Run 'convcommit init' to create one."
        )

    try:
        with open(config_file, "r") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise LLMConfigError(f"Failed to load config from {config_file}: {e}") from e

    if not isinstance(raw, dict):
        raise LLMConfigError(f"Config file {config_file} must contain a mapping of backends")

    try:
        return LLMConfig.model_validate(raw)
    except ValidationError as e:
        raise LLMConfigError(f"Invalid config in {config_file}:\n{e}") from e


def save_llm_config(config: LLMConfig, path: Optional[Path] = None) -> Path:
    """Persist the whole backend configuration atomically.

    The YAML is written to a temporary file next to the target and then
    moved over it, so readers see either the old or the new file.

    Args:
        config: Configuration to save.
        path: Config file path. Defaults to get_config_file_path().

    Returns:
        The path written.

    Raises:
        LLMConfigError: If the file cannot be written.
    """
    config_file = path or get_config_file_path()
    data = config.model_dump(exclude_none=True)

    tmp_name = None
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            dir=config_file.parent,
            prefix=f".{config_file.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            f.flush()
            os.fsync(f.fileno())
        # May contain API keys
        os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
        os.replace(tmp_name, config_file)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise LLMConfigError(f"Failed to save config to {config_file}: {e}") from e

    return config_file


def default_llm_config() -> LLMConfig:
    """Build the default configuration: the local ollama server, enabled."""
    return LLMConfig(
        ollama=BackendSettings(
            enabled=True,
            host=DEFAULT_OLLAMA_HOST,
            model=DEFAULT_OLLAMA_MODEL,
        )
    )


def initialize_default_config(path: Optional[Path] = None) -> LLMConfig:
    """Write the default configuration, replacing any existing file.

    Args:
        path: Config file path. Defaults to get_config_file_path().

    Returns:
        The configuration that was saved.
    """
    config = default_llm_config()
    save_llm_config(config, path)
    return config
