"""CLI commands for backend configuration management."""

from typing import Optional

import typer

from convcommit import credentials
from convcommit.cli.utils import mask_key, parse_backend
from convcommit.config import (
    AVAILABLE_MODELS,
    BACKEND_PRIORITY,
    DEFAULT_MODELS,
    get_api_key_env_var,
)
from convcommit.llm import ConfigMissingError, LLMError
from convcommit.llm_config import (
    LLMConfig,
    get_config_file_path,
    load_llm_config,
    save_llm_config,
)

# Subcommand group for configuration management
config_app = typer.Typer(
    name="config",
    help="Manage backend configuration in .convcommit/llm.config.yaml",
    add_completion=False,
)


def _load_or_empty() -> LLMConfig:
    try:
        return load_llm_config()
    except ConfigMissingError:
        return LLMConfig()


@config_app.command("show")
def config_show() -> None:
    """Show the current backend configuration."""
    try:
        config = load_llm_config()
    except ConfigMissingError:
        typer.echo("No configuration found. Run 'convcommit init' to set up.")
        return
    except LLMError as e:
        typer.echo(f"Error reading configuration: {e}", err=True)
        raise typer.Exit(1)

    enabled = config.enabled_backends()
    active = enabled[0] if enabled else None

    typer.echo(f"Backend configuration ({get_config_file_path()}):")
    typer.echo()
    for kind in BACKEND_PRIORITY:
        settings = config.settings_for(kind)
        status = "enabled" if settings.enabled else "disabled"
        marker = "  <- active" if kind == active else ""
        typer.echo(f"  {kind.value}: {status}{marker}")
        typer.echo(f"    Model: {settings.model or DEFAULT_MODELS[kind] + ' (default)'}")
        if settings.host:
            typer.echo(f"    Host: {settings.host}")
        if settings.location:
            typer.echo(f"    Location: {settings.location}")
        if settings.project:
            typer.echo(f"    Project: {settings.project}")
        if settings.api_key:
            typer.echo(f"    API Key: {mask_key(settings.api_key)}")

    if active is None:
        typer.echo()
        typer.echo("No backend is enabled. Use 'convcommit config enable <backend>'.")


@config_app.command("enable")
def config_enable(
    backend: str = typer.Argument(
        ...,
        help="Backend name (ollama, gemini, vertex, anthropic, openai)",
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    host: Optional[str] = typer.Option(None, "--host", help="Endpoint or base URL"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key to store in the config file"),
    location: Optional[str] = typer.Option(None, "--location", help="Vertex AI region"),
    project: Optional[str] = typer.Option(None, "--project", help="Vertex AI project"),
    exclusive: bool = typer.Option(
        False,
        "--exclusive",
        "-x",
        help="Disable every other backend",
    ),
) -> None:
    """Enable a backend and update its settings."""
    kind = parse_backend(backend)

    if model and model not in AVAILABLE_MODELS[kind]:
        typer.echo(f"Warning: {model} is not in the list of known models for {kind.value}")

    try:
        config = _load_or_empty()
        if exclusive:
            for other in BACKEND_PRIORITY:
                config.settings_for(other).enabled = False

        settings = config.settings_for(kind)
        settings.enabled = True
        for field, value in (
            ("model", model),
            ("host", host),
            ("api_key", api_key),
            ("location", location),
            ("project", project),
        ):
            if value is not None:
                setattr(settings, field, value)

        config_file = save_llm_config(config)
    except LLMError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Enabled {kind.value} in {config_file}")

    enabled = config.enabled_backends()
    if enabled[0] != kind:
        typer.echo(
            f"Note: {enabled[0].value} is also enabled and takes priority over {kind.value}."
        )


@config_app.command("disable")
def config_disable(
    backend: str = typer.Argument(
        ...,
        help="Backend name (ollama, gemini, vertex, anthropic, openai)",
    ),
) -> None:
    """Disable a backend."""
    kind = parse_backend(backend)

    try:
        config = load_llm_config()
        config.settings_for(kind).enabled = False
        save_llm_config(config)
    except LLMError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Disabled {kind.value}")


@config_app.command("set-key")
def config_set_key(
    backend: str = typer.Argument(
        ...,
        help="Backend name (gemini, vertex, anthropic, openai)",
    ),
) -> None:
    """Store an API key in ~/.convcommit/credentials."""
    kind = parse_backend(backend)

    env_var = get_api_key_env_var(kind)
    if env_var is None:
        typer.echo(f"{kind.value} does not use an API key.", err=True)
        raise typer.Exit(1)

    api_key = typer.prompt(f"Enter your {kind.value} API key", hide_input=True)

    try:
        credentials.save_credential(env_var, api_key)
    except LLMError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ API key saved for {kind.value} ({env_var})")


@config_app.command("list-backends")
def config_list_backends() -> None:
    """List backends in selection priority order."""
    typer.echo("Available backends (first enabled one is used):")
    typer.echo()
    for i, kind in enumerate(BACKEND_PRIORITY, 1):
        typer.echo(f"  {i}. {kind.value}")
    typer.echo()
    typer.echo("Use 'convcommit config list-models <backend>' to see known models.")


@config_app.command("list-models")
def config_list_models(
    backend: Optional[str] = typer.Argument(
        None,
        help="Backend name (optional, shows all if not provided)",
    ),
) -> None:
    """List known models for a backend (or all backends)."""
    kinds = [parse_backend(backend)] if backend else list(BACKEND_PRIORITY)

    for kind in kinds:
        typer.echo(f"{kind.value}:")
        for model in AVAILABLE_MODELS[kind]:
            typer.echo(f"  • {model}")
        typer.echo()
