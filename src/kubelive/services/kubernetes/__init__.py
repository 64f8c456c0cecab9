"""Kubernetes live table services.

Provides the resource table controller, the watch supervisor that keeps its
rows current, and the external command helpers used by row actions.
"""

from kubelive.services.kubernetes.base import LiveTableService, StatusReporter
from kubelive.services.kubernetes.commands import (
    Command,
    CommandBuilder,
    CommandError,
    CommandExecutor,
)
from kubelive.services.kubernetes.resource_table import ResourceTableController, TableFormat
from kubelive.services.kubernetes.watch_supervisor import WatchState, WatchSupervisor

__all__ = [
    "Command",
    "CommandBuilder",
    "CommandError",
    "CommandExecutor",
    "LiveTableService",
    "ResourceTableController",
    "StatusReporter",
    "TableFormat",
    "WatchState",
    "WatchSupervisor",
]
