"""Resource list screen.

The screen shows one live ``ResourceTable`` for the selected resource type
and namespace, with toolbar selectors for namespace, context and resource
type and a status line. Switching any of them tears the table down and
builds a fresh one driven by a new ``ResourceTableController``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header

from kubelive.integrations.kubernetes.exceptions import KubernetesError
from kubelive.integrations.kubernetes.resources import (
    BUILTIN_RESOURCES,
    NAMESPACES,
    PODS,
    Resource,
)
from kubelive.services.kubernetes.commands import CommandBuilder, CommandExecutor
from kubelive.services.kubernetes.resource_table import ResourceTableController, TableFormat
from kubelive.table.operations import Row
from kubelive.tui.apps.kubernetes.status import StatusBar
from kubelive.tui.apps.kubernetes.table_widget import ResourceTable
from kubelive.tui.apps.kubernetes.widgets import (
    ContextSelector,
    NamespaceSelector,
    ResourceTypeFilter,
)
from kubelive.tui.base import BaseScreen
from kubelive.tui.components.dialogs import HelpDialog

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.client import ClusterClient

logger = structlog.get_logger()

HELP_BINDINGS: list[tuple[str, str]] = [
    ("↑ ↓ / k j", "Move cursor"),
    ("PgUp PgDn Home End", "Scroll"),
    ("Enter / double click", "Select row"),
    ("space", "Row action menu"),
    ("d", "Describe selected resource"),
    ("e", "Edit selected resource"),
    ("c", "Copy resource name"),
    ("Delete", "Delete resource (with confirmation)"),
    ("Ctrl+R", "Reload table"),
    ("n / N", "Next namespace / pick namespace"),
    ("f / F", "Next resource type / pick resource type"),
    ("x / X", "Next context / pick context"),
    ("w", "Toggle wide columns"),
    ("?", "Show this help"),
    ("q", "Quit"),
]


class ResourceListScreen(BaseScreen[None]):
    """Screen showing a live table of Kubernetes resources.

    Args:
        client: Cluster API client.
        resource: Resource type shown first.
        namespace: Namespace shown first, None for all namespaces.
        table_format: Initial column selection and behavior flags.
    """

    BINDINGS = [
        Binding("ctrl+r", "refresh", "Reload"),
        Binding("n", "cycle_namespace", "Next NS"),
        Binding("N", "select_namespace", "Pick NS", show=False),
        Binding("f", "cycle_filter", "Next Type"),
        Binding("F", "select_filter", "Pick Type", show=False),
        Binding("x", "cycle_context", "Next Ctx", show=False),
        Binding("X", "select_context", "Pick Ctx", show=False),
        Binding("w", "toggle_wide", "Wide"),
        Binding("question_mark", "help", "Help"),
    ]

    DEFAULT_CSS = """
    ResourceListScreen #toolbar {
        height: 1;
        background: $boost;
    }
    """

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource = PODS,
        namespace: str | None = None,
        table_format: TableFormat = TableFormat.SHORT,
    ) -> None:
        super().__init__()
        self._client = client
        self._config = client.config
        self._resource = resource
        self._namespace = namespace
        self._format = table_format
        self._controller: ResourceTableController | None = None
        self._commands = CommandBuilder(
            self._config.commands,
            kubeconfig=self._config.kubeconfig,
            context=self._config.context,
        )

    @property
    def controller(self) -> ResourceTableController | None:
        """Controller of the table currently shown."""
        return self._controller

    @property
    def resource(self) -> Resource:
        """Resource type currently shown."""
        return self._resource

    @property
    def namespace(self) -> str | None:
        """Namespace currently shown, None for all namespaces."""
        return self._namespace

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        with Vertical():
            with Horizontal(id="toolbar"):
                yield NamespaceSelector([], current=self._namespace, id="ns-selector")
                yield ContextSelector(
                    [self._client.get_current_context()],
                    current=self._client.get_current_context(),
                    id="ctx-selector",
                )
                yield ResourceTypeFilter(
                    BUILTIN_RESOURCES, current=self._resource, id="type-filter"
                )
            yield ResourceTable(id="resource-table")
            yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Show the initial table and load selector options."""
        self._show_table()
        self.query_one(ResourceTable).focus()
        self._load_selector_options()

    def on_unmount(self) -> None:
        """Stop live updates when the screen goes away."""
        self._hide_table()

    # =========================================================================
    # Table lifecycle
    # =========================================================================

    def _show_table(self) -> None:
        """Replace the table with a fresh one for the current selection."""
        self._hide_table()
        table = self.query_one(ResourceTable)
        status = self.query_one(StatusBar)

        on_select = self._enter_namespace if self._resource == NAMESPACES else None
        controller = ResourceTableController(
            self._client,
            self._resource,
            self._namespace,
            table.reset(),
            status,
            commands=self._commands,
            executor=CommandExecutor(suspend=self.app.suspend, dispatch=self.app.call_from_thread),
            clipboard=self._copy_to_clipboard,
            table_format=self._format,
            restart_delay=self._config.watch.restart_delay,
            on_select=on_select,
        )
        table.configure(controller.capabilities(), controller.actions())
        self._controller = controller

        scope = self._namespace or "all namespaces"
        if not self._resource.namespaced:
            scope = "cluster"
        table.border_title = f"{self._resource.display_name} ({scope})"
        logger.info(
            "showing_table",
            resource=self._resource.plural,
            namespace=self._namespace,
            format=str(self._format),
        )
        controller.show()

    def _hide_table(self) -> None:
        if self._controller is not None:
            self._controller.hide()
            self._controller = None

    def _copy_to_clipboard(self, text: str) -> None:
        # Called from a controller worker thread
        self.app.call_from_thread(self.app.copy_to_clipboard, text)

    def _enter_namespace(self, row: Row) -> None:
        """Namespaces view: switch to the selected namespace's pods."""
        namespace = row.metadata.name if row.metadata else row.id
        self._namespace = namespace
        self._resource = PODS
        self.query_one(NamespaceSelector).set_current(namespace)
        self.query_one(ResourceTypeFilter).set_current(PODS)
        self._show_table()

    @work(thread=True, exclusive=True, group="selector-options")
    def _load_selector_options(self) -> None:
        """Fetch namespaces and contexts without blocking the UI."""
        contexts = [ctx["name"] for ctx in self._client.list_contexts()]
        try:
            namespaces = self._client.list_namespaces()
        except KubernetesError as e:
            logger.warning("failed_to_load_namespaces", error=str(e))
            namespaces = [self._namespace] if self._namespace else []
        self.app.call_from_thread(self._apply_selector_options, namespaces, contexts)

    def _apply_selector_options(self, namespaces: list[str], contexts: list[str]) -> None:
        self.query_one(NamespaceSelector).update_namespaces(namespaces)
        if contexts:
            self.query_one(ContextSelector).set_options(contexts)

    # =========================================================================
    # Keyboard Actions
    # =========================================================================

    def action_refresh(self) -> None:
        """Reload the table from a fresh listing."""
        if self._controller is not None:
            self._controller.refresh()

    def action_toggle_wide(self) -> None:
        """Switch between the default and the wide column set."""
        if TableFormat.WIDE in self._format:
            self._format = (self._format & ~TableFormat.WIDE) | TableFormat.SHORT
        else:
            narrow = TableFormat.SHORT | TableFormat.NAME_ONLY
            self._format = (self._format & ~narrow) | TableFormat.WIDE
        self._show_table()

    def action_help(self) -> None:
        """Show keyboard shortcut help."""
        self.app.push_screen(HelpDialog(HELP_BINDINGS, title="kubelive - keys"))

    def action_cycle_namespace(self) -> None:
        """Cycle to next namespace."""
        self.query_one(NamespaceSelector).cycle()

    def action_select_namespace(self) -> None:
        """Open namespace popup selector."""
        self.query_one(NamespaceSelector).select_from_popup()

    def action_cycle_filter(self) -> None:
        """Cycle to next resource type."""
        self.query_one(ResourceTypeFilter).cycle()

    def action_select_filter(self) -> None:
        """Open resource type popup selector."""
        self.query_one(ResourceTypeFilter).select_from_popup()

    def action_cycle_context(self) -> None:
        """Cycle to next kubeconfig context."""
        self.query_one(ContextSelector).cycle()

    def action_select_context(self) -> None:
        """Open context popup selector."""
        self.query_one(ContextSelector).select_from_popup()

    # =========================================================================
    # Widget Event Handlers
    # =========================================================================

    @on(NamespaceSelector.NamespaceChanged)
    def handle_namespace_changed(self, event: NamespaceSelector.NamespaceChanged) -> None:
        """Show the table for the newly selected namespace."""
        self._namespace = event.selected_namespace
        self._show_table()

    @on(ResourceTypeFilter.ResourceTypeChanged)
    def handle_resource_type_changed(self, event: ResourceTypeFilter.ResourceTypeChanged) -> None:
        """Show the table for the newly selected resource type."""
        self._resource = event.resource
        self._show_table()

    @on(ContextSelector.ContextChanged)
    def handle_context_changed(self, event: ContextSelector.ContextChanged) -> None:
        """Switch the client to another context and reload everything."""
        try:
            self._client.switch_context(event.context)
        except KubernetesError as e:
            self.report_error("context_switch_failed", e)
            return
        self._commands.set_context(event.context)
        self._show_table()
        self._load_selector_options()
        self.notify_user(f"Switched to context: {event.context}")
