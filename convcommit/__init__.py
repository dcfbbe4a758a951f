"""Conventional Commits message generator backed by language models."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("convcommit")
except PackageNotFoundError:
    # Fallback for development mode
    __version__ = "0.0.0-dev"
