"""Formatting helpers for relay console output."""

from datetime import datetime
from typing import Optional

from relay_cli.constants import PRIORITY_LABELS, SYMBOL_FAILURE, SYMBOL_ORPHANED, SYMBOL_SUCCESS


def format_date(value: Optional[str]) -> str:
    """
    Format a catalog timestamp to a YYYY-MM-DD HH:MM string.

    Args:
        value: Timestamp as stored by SQLite (``YYYY-MM-DD HH:MM:SS.fff``)

    Returns:
        Formatted date string, or the input unchanged if it cannot be parsed
    """
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return str(value)


def format_priority(priority: int) -> str:
    if 0 <= priority < len(PRIORITY_LABELS):
        return PRIORITY_LABELS[priority]
    return str(priority)


def format_presence(exists: bool) -> str:
    """Status cell for a catalogued worktree."""
    if exists:
        return f"[green]{SYMBOL_SUCCESS} active[/green]"
    return f"[yellow]{SYMBOL_ORPHANED} missing[/yellow]"


def format_mask(secret: Optional[str]) -> str:
    """Show only the tail of a stored key."""
    if not secret:
        return f"[red]{SYMBOL_FAILURE} not set[/red]"
    if len(secret) <= 8:
        return "****"
    return f"****{secret[-4:]}"
