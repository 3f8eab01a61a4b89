"""Full-screen list picker used for interactive selection."""

from typing import Any, List, Optional, Sequence, Tuple, TypeVar

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, OptionList, Static
from textual.widgets.option_list import Option

from relay_cli.__version__ import __version__

T = TypeVar("T")


class PickerApp(App[Optional[int]]):
    """Shows a list of labelled choices; exits with the chosen index or None."""

    TITLE = "relay"
    SUB_TITLE = f"v{__version__}"

    CSS = """
    Screen {
        background: $surface;
    }

    #picker-prompt {
        padding: 1 2;
        text-style: bold;
    }

    OptionList {
        height: 1fr;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("q", "cancel", "Cancel", show=False),
    ]

    def __init__(self, prompt: str, choices: Sequence[Tuple[str, Any]]):
        super().__init__()
        self.prompt = prompt
        self.choices: List[Tuple[str, Any]] = list(choices)

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header(show_clock=False, icon="")
        yield Static(self.prompt, id="picker-prompt")
        yield OptionList(*[Option(Text(label), id=str(i)) for i, (label, _) in enumerate(self.choices)])
        yield Footer()

    def on_mount(self) -> None:
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(event.option_index)

    def action_cancel(self) -> None:
        self.exit(None)


def pick(prompt: str, choices: Sequence[Tuple[str, T]]) -> Optional[T]:
    """Run the picker and return the chosen value, or None if cancelled."""
    app = PickerApp(prompt, choices)
    index = app.run()
    if index is None:
        return None
    return app.choices[index][1]
