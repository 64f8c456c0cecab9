"""Main Textual application for kubelive.

This module provides the KubeliveApp, the entry point of the interactive
live resource browser.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.app import App
from textual.binding import Binding

from kubelive.integrations.kubernetes.resources import PODS, Resource
from kubelive.services.kubernetes.resource_table import TableFormat
from kubelive.tui.apps.kubernetes.screens import ResourceListScreen

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.client import ClusterClient


class KubeliveApp(App[None]):
    """TUI application showing live tables of cluster resources.

    Args:
        client: Cluster API client.
        resource: Resource type shown at startup.
        namespace: Namespace shown at startup, None for all namespaces.
        table_format: Initial column selection and behavior flags.
    """

    TITLE = "kubelive"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("escape", "back", "Back", show=False),
    ]

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource = PODS,
        namespace: str | None = None,
        table_format: TableFormat = TableFormat.SHORT,
    ) -> None:
        """Initialize the app.

        Args:
            client: Cluster API client for cluster communication.
            resource: Resource type shown at startup.
            namespace: Namespace shown at startup.
            table_format: Initial format flags.
        """
        super().__init__()
        self._client = client
        self._resource = resource
        self._namespace = namespace
        self._table_format = table_format

    def on_mount(self) -> None:
        """Push the resource list screen on mount."""
        self.sub_title = self._client.get_current_context()
        self.push_screen(
            ResourceListScreen(
                client=self._client,
                resource=self._resource,
                namespace=self._namespace,
                table_format=self._table_format,
            )
        )

    async def action_quit(self) -> None:
        """Quit the application."""
        self.exit()

    async def action_back(self) -> None:
        """Close the top screen, keeping the resource list."""
        if len(self.screen_stack) > 2:
            self.pop_screen()
