"""Status line widget.

``StatusBar`` implements the ``StatusReporter`` protocol used by the live
table services. Its methods are called from background threads, so every
call is turned into a message handled on the UI thread.
"""

from __future__ import annotations

import threading
from typing import Any

import structlog
from rich.text import Text
from textual.message import Message

from kubelive.tui.base import BaseWidget
from kubelive.tui.components.dialogs import ConfirmDialog

logger = structlog.get_logger()

SEVERITY_STYLES = {
    "information": "",
    "warning": "yellow",
    "error": "bold red",
}


class StatusBar(BaseWidget):
    """One-line status display with confirmation prompts.

    Errors are also raised as notifications so they stay visible after the
    line is overwritten.
    """

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    class Update(Message):
        """Replace the status text."""

        def __init__(self, text: str, severity: str = "information") -> None:
            self.text = text
            self.severity = severity
            super().__init__()

    class ConfirmRequest(Message):
        """Ask the user a yes/no question on behalf of a waiting thread."""

        def __init__(self, prompt: str) -> None:
            self.prompt = prompt
            self.confirmed = False
            self.answered = threading.Event()
            super().__init__()

        def answer(self, confirmed: bool | None) -> None:
            """Record the answer and release the waiting thread."""
            self.confirmed = bool(confirmed)
            self.answered.set()

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._text = Text()
        self._severity = "information"

    @property
    def text(self) -> str:
        """Currently displayed message."""
        return self._text.plain

    @property
    def severity(self) -> str:
        """Severity of the displayed message."""
        return self._severity

    def render(self) -> Text:
        """Draw the current message."""
        return self._text

    # =========================================================================
    # StatusReporter
    # =========================================================================

    def info(self, message: str) -> None:
        """Show an informational message."""
        self.post_message(self.Update(message))

    def error(self, error: Exception | str) -> None:
        """Show an error."""
        logger.debug("status_error", error=str(error), error_type=type(error).__name__)
        self.post_message(self.Update(str(error), "error"))

    def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question and block until it is answered.

        Must not be called on the UI thread. Returns False if the widget
        can no longer receive messages.
        """
        request = self.ConfirmRequest(prompt)
        if not self.post_message(request):
            return False
        request.answered.wait()
        return request.confirmed

    # =========================================================================
    # Message Handlers
    # =========================================================================

    def on_status_bar_update(self, message: StatusBar.Update) -> None:
        """Show the new status text."""
        message.stop()
        self._severity = message.severity
        self._text = Text(message.text, style=SEVERITY_STYLES.get(message.severity, ""))
        self.refresh()
        if message.severity == "error":
            self.notify_user(message.text, severity="error")

    def on_status_bar_confirm_request(self, message: StatusBar.ConfirmRequest) -> None:
        """Show the confirmation dialog for a waiting thread."""
        message.stop()
        self.app.push_screen(ConfirmDialog(message.prompt), message.answer)
