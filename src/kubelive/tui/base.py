"""Base classes for kubelive screens and widgets.

Both give subclasses the same way of surfacing problems to the user:
a toast notification, plus a structured log record for errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import structlog
from textual.screen import Screen
from textual.widget import Widget

if TYPE_CHECKING:
    from textual.notifications import SeverityLevel

T = TypeVar("T")

logger = structlog.get_logger()


class BaseWidget(Widget):
    """Base class for kubelive widgets."""

    def notify_user(
        self,
        message: str,
        severity: SeverityLevel = "information",
    ) -> None:
        """Show a toast notification.

        Args:
            message: Notification text.
            severity: One of "information", "warning", "error".
        """
        self.app.notify(message, severity=severity, markup=False)


class BaseScreen(Screen[T]):
    """Base class for kubelive screens.

    Type Parameters:
        T: The type returned when the screen is dismissed.
    """

    def notify_user(
        self,
        message: str,
        severity: SeverityLevel = "information",
    ) -> None:
        """Show a toast notification.

        Args:
            message: Notification text.
            severity: One of "information", "warning", "error".
        """
        self.app.notify(message, severity=severity, markup=False)

    def report_error(self, event: str, error: Exception) -> None:
        """Log ``error`` under ``event`` and show it to the user."""
        logger.warning(event, screen=type(self).__name__, error=str(error))
        self.notify_user(str(error), severity="error")
