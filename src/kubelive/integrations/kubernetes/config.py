"""Configuration models for kubelive.

A single ``KubeliveConfig`` instance is built at startup (YAML file,
then environment, then CLI flags) and handed to the cluster client and the
TUI. Nothing is cached at module level.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

CONFIG_DIR = Path.home() / ".config" / "kubelive"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


class WatchConfig(BaseModel):
    """Settings for live table watches."""

    model_config = ConfigDict(extra="forbid")

    timeout_seconds: int = 300
    restart_delay: float = 0.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    @field_validator("restart_delay")
    @classmethod
    def validate_restart_delay(cls, v: float) -> float:
        """Validate restart_delay is non-negative."""
        if v < 0:
            raise ValueError("restart_delay must be non-negative")
        return v


class CommandConfig(BaseModel):
    """External commands used for describe, edit and paging."""

    model_config = ConfigDict(extra="forbid")

    kubectl: str = "kubectl"
    pager: str = "less"
    editor: str | None = None

    @field_validator("kubectl", "pager")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate command strings are not blank."""
        if not v.strip():
            raise ValueError("command must not be empty")
        return v


class KubeliveConfig(BaseModel):
    """Complete kubelive configuration."""

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str | None = None
    context: str | None = None
    namespace: str = "default"
    resource: str = "pods"
    request_timeout: int = 30
    retry_attempts: int = 3
    table_format: Literal["short", "wide", "name"] = "short"
    live: bool = True
    watch: WatchConfig = WatchConfig()
    commands: CommandConfig = CommandConfig()

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if v is None:
            return None
        return str(Path(v).expanduser())

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts is at least one."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> KubeliveConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            KUBELIVE_KUBECONFIG (or KUBECONFIG): kubeconfig path
            KUBELIVE_CONTEXT: kubeconfig context
            KUBELIVE_NAMESPACE: initial namespace
            KUBELIVE_TIMEOUT: request timeout in seconds
            KUBELIVE_WATCH_TIMEOUT: server-side watch timeout in seconds
            KUBELIVE_RESTART_DELAY: delay before re-opening a closed watch
            KUBELIVE_KUBECTL: kubectl binary
            KUBELIVE_PAGER (or PAGER): pager command
            KUBELIVE_EDITOR (or EDITOR): editor passed to kubectl edit
        """
        config_dict = base_config.copy() if base_config else {}
        watch = dict(config_dict.get("watch", {}))
        commands = dict(config_dict.get("commands", {}))

        if kubeconfig := os.environ.get("KUBELIVE_KUBECONFIG") or os.environ.get("KUBECONFIG"):
            # kubectl allows a path list; the first entry wins here
            config_dict["kubeconfig"] = kubeconfig.split(os.pathsep)[0]

        if context := os.environ.get("KUBELIVE_CONTEXT"):
            config_dict["context"] = context

        if namespace := os.environ.get("KUBELIVE_NAMESPACE"):
            config_dict["namespace"] = namespace

        if timeout := os.environ.get("KUBELIVE_TIMEOUT"):
            config_dict["request_timeout"] = int(timeout)

        if watch_timeout := os.environ.get("KUBELIVE_WATCH_TIMEOUT"):
            watch["timeout_seconds"] = int(watch_timeout)

        if restart_delay := os.environ.get("KUBELIVE_RESTART_DELAY"):
            watch["restart_delay"] = float(restart_delay)

        if kubectl := os.environ.get("KUBELIVE_KUBECTL"):
            commands["kubectl"] = kubectl

        if pager := os.environ.get("KUBELIVE_PAGER") or os.environ.get("PAGER"):
            commands["pager"] = pager

        if editor := os.environ.get("KUBELIVE_EDITOR") or os.environ.get("EDITOR"):
            commands["editor"] = editor

        config_dict["watch"] = watch
        config_dict["commands"] = commands
        return cls.model_validate(config_dict)

    @classmethod
    def load(cls, path: Path | None = None) -> KubeliveConfig:
        """Load configuration from a YAML file, then apply the environment.

        A missing or empty file yields the defaults.

        Args:
            path: Config file to read. Defaults to ~/.config/kubelive/config.yaml.

        Returns:
            Validated configuration.

        Raises:
            ValueError: If the file does not hold a mapping.
            pydantic.ValidationError: If a value is invalid.
        """
        config_path = path or CONFIG_FILE
        data: Any = None
        if config_path.exists():
            data = yaml.safe_load(config_path.read_text())
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping at the top level")
        return cls.from_env(data)
