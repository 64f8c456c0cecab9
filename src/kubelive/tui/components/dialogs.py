"""Modal dialogs shared by kubelive screens.

Usage:
    from kubelive.tui.components import ConfirmDialog

    def handle_result(confirmed: bool | None) -> None:
        if confirmed:
            do_delete()

    app.push_screen(ConfirmDialog("Delete pod web-1?"), handle_result)
"""

from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class ConfirmDialog(ModalScreen[bool]):
    """A centered yes/no question.

    Keyboard Navigation:
    - y: Confirm
    - n / Escape: Decline
    - Tab: Move between buttons
    - Enter: Activate focused button

    The dialog dismisses with True only when confirmed. "No" is focused
    first so a stray Enter declines.
    """

    DEFAULT_CSS = """
    ConfirmDialog {
        align: center middle;
    }

    ConfirmDialog > Container {
        width: auto;
        max-width: 80%;
        min-width: 40;
        height: auto;
        background: $surface;
        border: thick $error;
        padding: 1 2;
    }

    ConfirmDialog .dialog-title {
        text-style: bold;
        text-align: center;
        width: 100%;
        margin-bottom: 1;
    }

    ConfirmDialog .dialog-buttons {
        width: 100%;
        height: auto;
        align: center middle;
        margin-top: 1;
    }

    ConfirmDialog .dialog-buttons Button {
        margin: 0 1;
        min-width: 10;
    }
    """

    BINDINGS = [
        Binding("y", "answer(True)", "Yes", show=False),
        Binding("n", "answer(False)", "No", show=False),
        Binding("escape", "answer(False)", "Cancel", show=False),
        Binding("tab", "focus_next", "Next", show=False),
        Binding("shift+tab", "focus_previous", "Previous", show=False),
    ]

    def __init__(
        self,
        prompt: str,
        title: str = "Confirm",
        *,
        confirm_label: str = "Yes",
        cancel_label: str = "No",
    ) -> None:
        """Initialize the dialog.

        Args:
            prompt: Question shown to the user.
            title: Title displayed above the question.
            confirm_label: Label of the confirming button.
            cancel_label: Label of the declining button.
        """
        super().__init__()
        self._prompt = prompt
        self._title = title
        self._confirm_label = confirm_label
        self._cancel_label = cancel_label

    @property
    def prompt(self) -> str:
        """The question being asked."""
        return self._prompt

    def compose(self) -> ComposeResult:
        """Compose the dialog layout."""
        with Container():
            yield Label(self._title, classes="dialog-title")
            yield Static(self._prompt, id="confirm-prompt", markup=False)
            with Horizontal(classes="dialog-buttons"):
                yield Button(self._confirm_label, id="confirm-yes", variant="error")
                yield Button(self._cancel_label, id="confirm-no", variant="default")

    def on_mount(self) -> None:
        """Focus the declining button."""
        self.query_one("#confirm-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Dismiss with the answer of the pressed button."""
        event.stop()
        self.dismiss(event.button.id == "confirm-yes")

    def action_answer(self, answer: bool) -> None:
        """Dismiss with ``answer``."""
        self.dismiss(answer)


class HelpDialog(ModalScreen[None]):
    """Read-only overlay listing key bindings."""

    DEFAULT_CSS = """
    HelpDialog {
        align: center middle;
    }

    HelpDialog > Vertical {
        width: auto;
        max-width: 90%;
        height: auto;
        max-height: 90%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    HelpDialog .dialog-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close", show=False),
        Binding("question_mark", "close", "Close", show=False),
        Binding("q", "close", "Close", show=False),
    ]

    def __init__(self, bindings: list[tuple[str, str]], title: str = "Keys") -> None:
        """Initialize the help overlay.

        Args:
            bindings: (keys, description) pairs in display order.
            title: Title displayed above the list.
        """
        super().__init__()
        self._help_bindings = bindings
        self._title = title

    def compose(self) -> ComposeResult:
        """Compose the overlay layout."""
        width = max((len(keys) for keys, _ in self._help_bindings), default=0)
        lines = [
            f"[bold]{escape(keys.ljust(width))}[/bold]  {escape(text)}"
            for keys, text in self._help_bindings
        ]
        with Vertical():
            yield Label(self._title, classes="dialog-title")
            yield Static("\n".join(lines), id="help-body")

    def action_close(self) -> None:
        """Close the overlay."""
        self.dismiss(None)
