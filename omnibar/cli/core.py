"""Shared CLI application context and setup helpers."""

from __future__ import annotations

import sys

import typer
from loguru import logger
from rich.console import Console

from omnibar import __logo__, __version__

app = typer.Typer(
    name="omnibar",
    help=f"{__logo__} omnibar - command palette query core",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} omnibar v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-V", callback=version_callback, is_eager=True),
) -> None:
    """omnibar - command palette query core."""


def configure_logging(verbose: bool) -> None:
    """Route loguru to stderr at DEBUG when verbose, WARNING otherwise."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def make_runtime():
    """Load config and build the wired runtime."""
    from omnibar.app.bootstrap import build_runtime
    from omnibar.config.loader import load_config

    return build_runtime(load_config())
