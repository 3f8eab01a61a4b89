"""User interaction seam for workflows.

Workflows only talk to a ``Prompter``; the terminal implementation uses the
textual picker for lists and ``rich.prompt`` for questions, and tests pass a
scripted prompter instead.
"""

import sys
from typing import Optional, Sequence, Tuple, TypeVar

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from relay_cli.exceptions import WorkflowCancelled

T = TypeVar("T")


class Prompter:
    """Interface for questions a workflow asks the user."""

    def select(self, prompt: str, choices: Sequence[Tuple[str, T]]) -> T:
        """Return the value of the chosen ``(label, value)`` pair."""
        raise NotImplementedError

    def confirm(self, message: str, default: bool = True) -> bool:
        raise NotImplementedError

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        raise NotImplementedError


class TerminalPrompter(Prompter):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def select(self, prompt: str, choices: Sequence[Tuple[str, T]]) -> T:
        if not choices:
            raise WorkflowCancelled("Nothing to choose from")

        if sys.stdin.isatty() and sys.stdout.isatty():
            from relay_cli.ui.picker import pick

            value = pick(prompt, choices)
            if value is None:
                raise WorkflowCancelled()
            return value

        # Fallback for pipes: numbered list
        self.console.print(f"[bold]{prompt}[/bold]")
        for i, (label, _) in enumerate(choices, 1):
            self.console.print(f"  {i}. {label}")
        index = IntPrompt.ask(
            "Choice", console=self.console, choices=[str(i) for i in range(1, len(choices) + 1)]
        )
        return choices[index - 1][1]

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        if default is None:
            return Prompt.ask(message, password=password, console=self.console)
        return Prompt.ask(message, default=default, password=password, console=self.console)
