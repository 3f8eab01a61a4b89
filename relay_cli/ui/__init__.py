"""Interactive user interface pieces for relay."""

from .prompts import Prompter, TerminalPrompter

__all__ = ["Prompter", "TerminalPrompter"]
