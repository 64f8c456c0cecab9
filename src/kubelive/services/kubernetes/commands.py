"""External command building and execution (kubectl, pager).

Row actions such as describe and edit hand the terminal over to external
programs. ``CommandBuilder`` produces the command lines and
``CommandExecutor`` runs them as a pipeline with the TUI suspended.
"""

from __future__ import annotations

import os
import shlex
import signal
import subprocess
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from kubelive.integrations.kubernetes.exceptions import KubernetesError

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.config import CommandConfig
    from kubelive.integrations.kubernetes.resources import Resource

logger = structlog.get_logger()

# A reader that quits early (the pager) makes upstream writers die of SIGPIPE
IGNORED_RETURN_CODES = (0, -signal.SIGPIPE)


class CommandError(KubernetesError):
    """Raised when an external command cannot be started or fails."""

    def __init__(
        self,
        message: str,
        argv: Sequence[str] = (),
        returncode: int | None = None,
    ) -> None:
        super().__init__(message=message)
        self.argv = tuple(argv)
        self.returncode = returncode


@dataclass(frozen=True)
class Command:
    """A command line plus extra environment variables."""

    argv: tuple[str, ...]
    env: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return shlex.join(self.argv)


class CommandBuilder:
    """Builds kubectl and pager command lines for the current cluster.

    Args:
        config: Command settings (kubectl binary, pager, editor).
        kubeconfig: Kubeconfig path passed to kubectl, if not the default.
        context: Kubeconfig context passed to kubectl, if not the current.
    """

    def __init__(
        self,
        config: CommandConfig,
        kubeconfig: str | None = None,
        context: str | None = None,
    ) -> None:
        self._config = config
        self._kubeconfig = kubeconfig
        self._context = context

    def set_context(self, context: str | None) -> None:
        """Target a different kubeconfig context."""
        self._context = context

    def kubectl(self, *args: str, namespace: str | None = None) -> Command:
        """Build an arbitrary kubectl invocation."""
        argv = [*shlex.split(self._config.kubectl)]
        if self._kubeconfig:
            argv += ["--kubeconfig", self._kubeconfig]
        if self._context:
            argv += ["--context", self._context]
        if namespace:
            argv += ["--namespace", namespace]
        argv += args
        return Command(tuple(argv))

    def describe(self, namespace: str | None, resource: Resource, name: str) -> Command:
        """``kubectl describe <resource> <name>``."""
        return self.kubectl("describe", resource.kubectl_name, name, namespace=namespace)

    def edit(self, namespace: str | None, resource: Resource, name: str) -> Command:
        """``kubectl edit <resource> <name>`` using the configured editor."""
        command = self.kubectl("edit", resource.kubectl_name, name, namespace=namespace)
        if self._config.editor:
            return Command(command.argv, {"KUBE_EDITOR": self._config.editor})
        return command

    def pager(self) -> Command:
        """The configured pager."""
        return Command(tuple(shlex.split(self._config.pager)))


class CommandExecutor:
    """Runs command pipelines on the controlling terminal.

    Args:
        suspend: Context manager factory that releases the terminal for the
            duration of the pipeline (``App.suspend`` in the TUI).
        dispatch: Runs a callable on the thread that owns the terminal and
            returns its result (``App.call_from_thread`` in the TUI). Called
            directly when omitted.
    """

    def __init__(
        self,
        suspend: Callable[[], AbstractContextManager[Any]] | None = None,
        dispatch: Callable[..., Any] | None = None,
    ) -> None:
        self._suspend = suspend or nullcontext
        self._dispatch = dispatch

    def pipe(self, *commands: Command) -> None:
        """Run commands chained stdout to stdin, and wait for all of them.

        Raises:
            CommandError: If a command cannot be started or exits non-zero.
        """
        if not commands:
            return
        if self._dispatch is not None:
            self._dispatch(self._run_suspended, commands)
        else:
            self._run_suspended(commands)

    def _run_suspended(self, commands: Sequence[Command]) -> None:
        with self._suspend():
            self._run_pipeline(commands)

    def _run_pipeline(self, commands: Sequence[Command]) -> None:
        logger.debug("running_pipeline", commands=[str(c) for c in commands])
        processes: list[subprocess.Popen[bytes]] = []
        previous_stdout = None
        try:
            for i, command in enumerate(commands):
                is_last = i == len(commands) - 1
                try:
                    process = subprocess.Popen(
                        command.argv,
                        stdin=previous_stdout,
                        stdout=None if is_last else subprocess.PIPE,
                        env={**os.environ, **command.env} if command.env else None,
                    )
                except OSError as e:
                    raise CommandError(
                        message=f"Cannot run '{command.argv[0]}': {e.strerror or e}",
                        argv=command.argv,
                    ) from e
                if previous_stdout is not None:
                    # Only the child keeps the pipe open
                    previous_stdout.close()
                previous_stdout = process.stdout
                processes.append(process)
        finally:
            if previous_stdout is not None and processes and processes[-1].stdout is not None:
                processes[-1].stdout.close()
            for process in processes:
                process.wait()

        for command, process in zip(commands, processes, strict=False):
            if process.returncode not in IGNORED_RETURN_CODES:
                raise CommandError(
                    message=f"Command '{command}' failed with exit code {process.returncode}",
                    argv=command.argv,
                    returncode=process.returncode,
                )
