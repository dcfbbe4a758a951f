"""CLI command for initializing the backend configuration."""

import typer

from convcommit.llm import LLMError
from convcommit.llm_config import get_config_file_path, initialize_default_config, is_configured


def init_config(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing configuration without asking",
    ),
) -> None:
    """Create the default backend configuration (local ollama server)."""
    config_file = get_config_file_path()

    if is_configured(config_file) and not force:
        overwrite = typer.confirm(
            f"Configuration already exists at {config_file}. Overwrite?",
            default=False,
        )
        if not overwrite:
            typer.echo("Keeping existing configuration.")
            raise typer.Exit(0)

    try:
        config = initialize_default_config(config_file)
    except LLMError as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Configuration saved to {config_file}")
    typer.echo(f"  Backend: ollama ({config.ollama.host})")
    typer.echo(f"  Model: {config.ollama.model}")
    typer.echo()
    typer.echo("Use 'convcommit config enable <backend>' to switch to a hosted model.")
