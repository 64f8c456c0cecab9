"""Row capabilities and the hotkey/drop-down action list of a table.

A table view declares up front which optional behaviors it supports through
``TableCapabilities``; it never probes its owner at runtime. Extra per-row
commands (describe, edit, ...) are collected in an ``ActionList`` that can be
triggered by hotkey or picked from a drop-down menu.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from kubelive.table.operations import Row

RowCallback = Callable[[Row], None]

MENU_KEY = "space"


@dataclass(frozen=True)
class TableCapabilities:
    """Optional callbacks a table view supports.

    Attributes:
        on_select: Enter / double-click on a row.
        on_delete: Delete key on a row.
        on_cursor_change: The cursor moved to a different row.
    """

    on_select: RowCallback | None = None
    on_delete: RowCallback | None = None
    on_cursor_change: RowCallback | None = None


@dataclass(frozen=True)
class Action:
    """A command bound to a hotkey and listed in the drop-down menu."""

    key: str
    label: str
    handler: RowCallback

    @property
    def menu_label(self) -> str:
        """Menu entry text, e.g. ``[d] Describe``."""
        return f"[{self.key}] {self.label}"


class ActionList:
    """Hotkey dispatcher with an optional drop-down menu.

    While the menu is open it captures every key: up/down move the
    highlight, enter runs the highlighted action, escape closes the menu and
    anything else is swallowed.
    """

    def __init__(self, actions: Iterable[Action] = ()) -> None:
        self._actions: list[Action] = list(actions)
        self._open = False
        self._highlighted = 0

    @property
    def actions(self) -> tuple[Action, ...]:
        """Registered actions in menu order."""
        return tuple(self._actions)

    @property
    def is_open(self) -> bool:
        """Whether the drop-down menu is showing."""
        return self._open

    @property
    def highlighted(self) -> int:
        """Index of the highlighted menu entry."""
        return self._highlighted

    def add(self, action: Action) -> None:
        """Register an action, replacing any action bound to the same key."""
        self._actions = [a for a in self._actions if a.key != action.key]
        self._actions.append(action)

    def open(self) -> None:
        """Show the drop-down menu."""
        if self._actions:
            self._open = True
            self._highlighted = 0

    def close(self) -> None:
        """Hide the drop-down menu."""
        self._open = False

    def handle_key(self, key: str, row: Row | None) -> bool:
        """Dispatch a key press.

        Args:
            key: Textual key name (e.g. "d", "enter", "space").
            row: Row under the cursor, passed to the action handler.

        Returns:
            True if the key was consumed.
        """
        if self._open:
            self._handle_menu_key(key, row)
            return True

        if key == MENU_KEY and self._actions:
            self.open()
            return True

        for action in self._actions:
            if action.key == key:
                self._run(action, row)
                return True
        return False

    def _handle_menu_key(self, key: str, row: Row | None) -> None:
        if key in ("up", "k"):
            self._highlighted = (self._highlighted - 1) % len(self._actions)
        elif key in ("down", "j"):
            self._highlighted = (self._highlighted + 1) % len(self._actions)
        elif key == "enter":
            action = self._actions[self._highlighted]
            self.close()
            self._run(action, row)
        elif key in ("escape", MENU_KEY):
            self.close()

    def _run(self, action: Action, row: Row | None) -> None:
        if row is None:
            return
        action.handler(row)

    def menu_lines(self) -> list[str]:
        """Menu entries padded to a common width."""
        labels = [a.menu_label for a in self._actions]
        width = max((len(label) for label in labels), default=0)
        return [f" {label.ljust(width)} " for label in labels]
