"""File-backed multi-user table store driven by a small command language."""

from .cli import cli

__all__ = ["cli", "main"]


def main() -> None:
    """Entry point for the csvdb CLI."""
    cli()
