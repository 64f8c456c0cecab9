"""Reusable TUI components.

Usage:
    from kubelive.tui.components import ConfirmDialog, HelpDialog

    app.push_screen(ConfirmDialog("Delete pod web-1?"), on_answer)
    app.push_screen(HelpDialog([("q", "Quit")]))
"""

from kubelive.tui.components.dialogs import ConfirmDialog, HelpDialog

__all__ = [
    "ConfirmDialog",
    "HelpDialog",
]
