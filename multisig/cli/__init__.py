"""Command line entry points for multisig governance (see `multisig.cli.main`)."""

from .main import app, main

__all__ = ["app", "main"]
