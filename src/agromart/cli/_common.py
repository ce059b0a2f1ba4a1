"""Shared CLI helpers: config resolution."""

from __future__ import annotations

import sys
from pathlib import Path

from rich.console import Console

from agromart.core.config import AgromartConfig, default_config, load_config
from agromart.core.constants import ExitCode
from agromart.core.exceptions import ConfigError, ConfigNotFoundError


def resolve_config(config_path: str, console: Console) -> AgromartConfig:
    """
    Load the config for a command.

    An explicit ``--config`` path must exist. Without one, a missing default
    file falls back to built-in defaults (sandbox auth).
    """
    try:
        if config_path:
            return load_config(Path(config_path))
        return load_config()
    except ConfigNotFoundError:
        if config_path:
            console.print(f"[red]Config file not found:[/red] {config_path}")
            sys.exit(ExitCode.CONFIG_ERROR)
        return default_config()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
