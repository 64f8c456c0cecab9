"""Toolbar selector widgets.

Namespace, context and resource type selectors share one behavior: a
quick-cycle (lowercase key) and a popup picker (uppercase key). Each posts
its own ``Changed`` message when the value changes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Label, OptionList
from textual.widgets.option_list import Option

from kubelive.integrations.kubernetes.resources import Resource
from kubelive.tui.base import BaseWidget

ALL_NAMESPACES_LABEL = "All Namespaces"

V = TypeVar("V")


class SelectorPopup(ModalScreen[str | None]):
    """Modal popup for picking one option.

    Returns the picked option label, or None if dismissed.
    """

    DEFAULT_CSS = """
    SelectorPopup {
        align: center middle;
    }

    SelectorPopup #popup-container {
        width: 50;
        max-height: 70%;
        border: thick $primary;
        background: $surface;
        padding: 1;
    }

    SelectorPopup #popup-title {
        text-style: bold;
        margin-bottom: 1;
    }

    SelectorPopup OptionList {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        ("escape", "dismiss_popup", "Close"),
    ]

    def __init__(self, title: str, options: Sequence[str], current: str | None = None) -> None:
        """Initialize the selector popup.

        Args:
            title: Title displayed above the option list.
            options: Option labels to display.
            current: Option highlighted initially.
        """
        super().__init__()
        self._title = title
        self._options = list(options)
        self._current = current

    def compose(self) -> ComposeResult:
        """Compose the popup layout."""
        with Vertical(id="popup-container"):
            yield Label(self._title, id="popup-title")
            yield OptionList(*[Option(opt) for opt in self._options], id="popup-options")

    def on_mount(self) -> None:
        """Highlight the current option."""
        if self._current in self._options:
            option_list = self.query_one("#popup-options", OptionList)
            option_list.highlighted = self._options.index(self._current)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Return the picked option."""
        self.dismiss(self._options[event.option_index])

    def action_dismiss_popup(self) -> None:
        """Dismiss without a pick."""
        self.dismiss(None)


class Selector(BaseWidget, Generic[V]):
    """Labelled value cycled or picked from a popup.

    Subclasses define ``caption``, ``popup_title``, ``label_for`` and
    ``changed_message``.
    """

    DEFAULT_CSS = """
    Selector {
        width: auto;
        height: 1;
        padding: 0 1;
        layout: horizontal;
    }

    Selector .selector-label {
        color: $text-muted;
        margin-right: 1;
    }

    Selector .selector-value {
        text-style: bold;
        color: $primary;
    }
    """

    caption = ""
    popup_title = "Select"

    def __init__(self, options: Sequence[V], current: V | None = None, **kwargs: Any) -> None:
        """Initialize the selector.

        Args:
            options: Available values in cycling order.
            current: Initially selected value.
            **kwargs: Additional widget arguments.
        """
        super().__init__(**kwargs)
        self._options: list[V] = list(options)
        self._current: V | None = current

    @property
    def current(self) -> V | None:
        """Selected value."""
        return self._current

    @property
    def options(self) -> list[V]:
        """Available values."""
        return list(self._options)

    @property
    def display_value(self) -> str:
        """Label of the selected value."""
        return self.label_for(self._current)

    def label_for(self, value: V | None) -> str:
        return str(value)

    def changed_message(self, value: V | None) -> Message:
        raise NotImplementedError

    def compose(self) -> ComposeResult:
        """Compose the widget layout."""
        yield Label(self.caption, classes="selector-label")
        yield Label(self.display_value, classes="selector-value")

    def set_options(self, options: Sequence[V]) -> None:
        """Replace the available values, keeping the selection."""
        self._options = list(options)

    def set_current(self, value: V | None, notify: bool = False) -> None:
        """Select ``value``, optionally posting the changed message."""
        self._current = value
        if self.is_mounted:
            self.query_one(".selector-value", Label).update(self.display_value)
        if notify:
            self.post_message(self.changed_message(value))

    def cycle(self) -> None:
        """Select the next value."""
        if not self._options:
            return
        try:
            index = self._options.index(self._current)  # type: ignore[arg-type]
        except ValueError:
            index = -1
        self.set_current(self._options[(index + 1) % len(self._options)], notify=True)

    def select_from_popup(self) -> None:
        """Open the popup picker."""
        labels = [self.label_for(option) for option in self._options]
        popup = SelectorPopup(self.popup_title, labels, current=self.display_value)
        self.app.push_screen(popup, self._handle_popup_result)

    def _handle_popup_result(self, result: str | None) -> None:
        if result is None:
            return
        for option in self._options:
            if self.label_for(option) == result:
                self.set_current(option, notify=True)
                return


class NamespaceSelector(Selector[str | None]):
    """Namespace scope; ``None`` stands for all namespaces."""

    caption = "NS:"
    popup_title = "Select Namespace"

    class NamespaceChanged(Message):
        """Emitted when the selected namespace changes."""

        def __init__(self, selected_namespace: str | None) -> None:
            """Initialize with the new namespace.

            Args:
                selected_namespace: New namespace name, or None for all namespaces.
            """
            self.selected_namespace = selected_namespace
            super().__init__()

    def __init__(self, namespaces: Sequence[str], current: str | None = None, **kwargs: Any) -> None:
        super().__init__([None, *namespaces], current, **kwargs)

    def update_namespaces(self, namespaces: Sequence[str]) -> None:
        """Replace the namespace list; "All Namespaces" stays first."""
        self.set_options([None, *namespaces])

    def label_for(self, value: str | None) -> str:
        return ALL_NAMESPACES_LABEL if value is None else value

    def changed_message(self, value: str | None) -> Message:
        return self.NamespaceChanged(value)


class ContextSelector(Selector[str]):
    """Kubeconfig context."""

    caption = "Ctx:"
    popup_title = "Select Cluster Context"

    class ContextChanged(Message):
        """Emitted when the selected context changes."""

        def __init__(self, context: str) -> None:
            """Initialize with the new context name.

            Args:
                context: Kubeconfig context name.
            """
            self.context = context
            super().__init__()

    def label_for(self, value: str | None) -> str:
        return value or "unknown"

    def changed_message(self, value: str | None) -> Message:
        return self.ContextChanged(value or "")


class ResourceTypeFilter(Selector[Resource]):
    """Resource type shown in the table."""

    caption = "Type:"
    popup_title = "Select Resource Type"

    class ResourceTypeChanged(Message):
        """Emitted when the selected resource type changes."""

        def __init__(self, resource: Resource) -> None:
            """Initialize with the new resource type.

            Args:
                resource: Selected resource descriptor.
            """
            self.resource = resource
            super().__init__()

    def label_for(self, value: Resource | None) -> str:
        return value.display_name if value is not None else ""

    def changed_message(self, value: Resource | None) -> Message:
        return self.ResourceTypeChanged(value or self._options[0])
