"""Command-line interface for relay.

This package provides the CLI entry point, argument parsing and the
per-command handlers.
"""

from .main import main
from .args import parse_args

__all__ = ["main", "parse_args"]
