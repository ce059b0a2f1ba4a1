"""agromart config — write defaults and inspect the effective configuration."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from rich.console import Console

from agromart.core.config import (
    AgromartConfig,
    config_file_path,
    config_to_dict,
    save_config,
)
from agromart.core.constants import ExitCode
from agromart.core.exceptions import ConfigError


def cmd_config_init(path: str, force: bool, console: Console) -> None:
    cfg_path = Path(path) if path else config_file_path()
    if cfg_path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {cfg_path}")
        console.print("Use [cyan]--force[/cyan] to overwrite.")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        written = save_config(config_to_dict(AgromartConfig()), cfg_path)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(ExitCode.CONFIG_ERROR)
    console.print(f"[green]Wrote[/green] {written}")


def cmd_config_show(config: AgromartConfig, as_json: bool, console: Console) -> None:
    data = config.model_dump(mode="json")
    if config.auth.api_token is not None:
        data["auth"]["api_token"] = "***"
    source = str(config.config_path) if config.config_path else "built-in defaults"

    if as_json:
        print(json.dumps({"source": source, "config": data}, indent=2))
        return

    console.print(f"[bold]Agromart config[/bold] ([dim]{source}[/dim])\n")
    for section, values in data.items():
        console.print(f"[cyan]\\[{section}][/cyan]")
        for key, value in values.items():
            console.print(f"  {key:<24} {value}")
    console.print()
    mode = "sandbox" if config.sandbox else config.auth.endpoint
    console.print(f"Auth backend: [bold]{mode}[/bold]")
