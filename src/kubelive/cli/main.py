"""Main CLI entry point using Typer."""

from __future__ import annotations

from pathlib import Path

import structlog
import typer
import yaml
from rich.console import Console

from kubelive import __version__
from kubelive.integrations.kubernetes.client import ClusterClient
from kubelive.integrations.kubernetes.config import KubeliveConfig
from kubelive.integrations.kubernetes.exceptions import KubernetesConnectionError
from kubelive.integrations.kubernetes.resources import get_resource
from kubelive.logging.config import configure_logging
from kubelive.services.kubernetes.resource_table import TableFormat
from kubelive.tui.apps.kubernetes import KubeliveApp

app = typer.Typer(
    name="kubelive",
    help="Live terminal tables for Kubernetes cluster resources.",
    add_completion=True,
)

console = Console(stderr=True)
logger = structlog.get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        Console().print(f"kubelive version {__version__}")
        raise typer.Exit()


def build_config(
    config_file: Path | None,
    kubeconfig: str | None,
    context: str | None,
    namespace: str | None,
    resource: str | None,
    wide: bool,
    no_watch: bool,
) -> KubeliveConfig:
    """Load file and environment configuration, then overlay CLI flags."""
    config = KubeliveConfig.load(config_file)
    overrides: dict[str, object] = {}
    if kubeconfig:
        overrides["kubeconfig"] = kubeconfig
    if context:
        overrides["context"] = context
    if namespace:
        overrides["namespace"] = namespace
    if resource:
        overrides["resource"] = resource
    if wide:
        overrides["table_format"] = "wide"
    if no_watch:
        overrides["live"] = False
    if not overrides:
        return config
    return KubeliveConfig.model_validate({**config.model_dump(), **overrides})


@app.command()
def main(
    resource: str | None = typer.Argument(
        None,
        help="Resource type to show (plural, kind or short name, e.g. pods, deploy).",
    ),
    namespace: str | None = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Namespace to show initially.",
    ),
    all_namespaces: bool = typer.Option(
        False,
        "--all-namespaces",
        "-A",
        help="Show resources of all namespaces.",
    ),
    context: str | None = typer.Option(
        None,
        "--context",
        help="Kubeconfig context to use.",
    ),
    kubeconfig: str | None = typer.Option(
        None,
        "--kubeconfig",
        help="Path to the kubeconfig file.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="Path to a kubelive YAML config file.",
    ),
    wide: bool = typer.Option(
        False,
        "--wide",
        "-w",
        help="Show all table columns.",
    ),
    no_watch: bool = typer.Option(
        False,
        "--no-watch",
        help="Show a static listing without live updates.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging.",
    ),
) -> None:
    """Browse Kubernetes resources in live-updating tables."""
    configure_logging(verbose=verbose, debug=debug)

    try:
        config = build_config(
            config_file, kubeconfig, context, namespace, resource, wide, no_watch
        )
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    try:
        initial_resource = get_resource(config.resource)
    except KeyError as e:
        console.print(f"[red]Unknown resource type:[/red] {config.resource}")
        raise typer.Exit(code=1) from e

    try:
        client = ClusterClient(config)
    except KubernetesConnectionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e

    initial_namespace = None if all_namespaces else config.namespace
    table_format = TableFormat.from_config(config.table_format, live=config.live)
    logger.info(
        "starting_tui",
        resource=initial_resource.plural,
        namespace=initial_namespace,
        format=str(table_format),
    )
    with client:
        KubeliveApp(
            client,
            resource=initial_resource,
            namespace=initial_namespace,
            table_format=table_format,
        ).run()


if __name__ == "__main__":
    app()
