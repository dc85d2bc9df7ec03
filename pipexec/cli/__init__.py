"""Command line interface for pipexec."""

from pipexec.cli.main import app, main

__all__ = ["app", "main"]
