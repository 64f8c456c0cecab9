"""Terminal User Interface for kubelive.

This package provides the Textual application, screens and widgets that
display live resource tables.

Usage:
    from kubelive.tui import BaseScreen, BaseWidget
    from kubelive.tui.components import ConfirmDialog, HelpDialog
    from kubelive.tui.apps.kubernetes import KubeliveApp
"""

from kubelive.tui.base import BaseScreen, BaseWidget

__all__ = [
    "BaseScreen",
    "BaseWidget",
]
