"""
Agromart CLI entry point.

Commands:
  agromart login PHONE [--agree]   — send an OTP and verify it interactively
  agromart verify PHONE CODE       — one-shot verification (scripts/CI)
  agromart config init             — write a default config file
  agromart config show             — show the effective configuration
  agromart version                 — show version information
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from rich.console import Console

from agromart import __version__

if TYPE_CHECKING:
    from agromart.core.config import AgromartConfig

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="agromart %(version)s")
@click.option("--config", "config_path", default="", help="Path to config.toml")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """Agromart — phone number sign-in with one-time passcodes."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _config(ctx: click.Context) -> AgromartConfig:
    from agromart.cli._common import resolve_config
    from agromart.core.logsetup import configure_logging

    config = resolve_config(ctx.obj.get("config_path", ""), console=err_console)
    configure_logging(config.logging, console=err_console)
    return config


# ---------------------------------------------------------------------------
# login / verify
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("phone")
@click.option("--agree", is_flag=True, default=False, help="Accept the terms and conditions")
@click.pass_context
def login(ctx: click.Context, phone: str, agree: bool) -> None:
    """Send an OTP to PHONE and enter it interactively."""
    from agromart.cli._login import cmd_login

    cmd_login(phone=phone, agreed=agree, config=_config(ctx), console=console)


@cli.command()
@click.argument("phone")
@click.argument("code")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def verify(ctx: click.Context, phone: str, code: str, as_json: bool) -> None:
    """Verify CODE for PHONE without the interactive screen."""
    from agromart.cli._verify import cmd_verify

    cmd_verify(phone=phone, code=code, as_json=as_json, config=_config(ctx), console=console)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.group()
def config() -> None:
    """Configuration management."""


@config.command("init")
@click.option("--path", default="", help="Where to write (default: ~/.agromart/config.toml)")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file")
def config_init(path: str, force: bool) -> None:
    """Write a config file with the built-in defaults."""
    from agromart.cli._config_cmd import cmd_config_init

    cmd_config_init(path=path, force=force, console=console)


@config.command("show")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show the effective configuration (file + AGROMART_* overrides)."""
    from agromart.cli._config_cmd import cmd_config_show

    cmd_config_show(config=_config(ctx), as_json=as_json, console=console)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def version(as_json: bool) -> None:
    """Show version information."""
    import platform
    import sys as _sys

    if as_json:
        import json

        click.echo(
            json.dumps(
                {
                    "agromart": __version__,
                    "python": _sys.version.split()[0],
                    "platform": _sys.platform,
                    "arch": platform.machine(),
                },
                indent=2,
            )
        )
    else:
        console.print(f"agromart {__version__}")
        console.print(f"Python {_sys.version.split()[0]}")
        console.print(f"Platform: {_sys.platform} {platform.machine()}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
