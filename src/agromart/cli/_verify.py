"""agromart verify — one-shot verification of a code, for scripts."""

from __future__ import annotations

import asyncio
import json
import sys

from rich.console import Console

from agromart.auth import build_auth_service
from agromart.core.config import AgromartConfig
from agromart.core.constants import ExitCode
from agromart.core.exceptions import IncompleteInput, InvalidPhoneNumber, VerificationFailed
from agromart.core.login import normalize_phone, verify_once
from agromart.core.otp.models import VerifyReason


def cmd_verify(
    phone: str, code: str, as_json: bool, config: AgromartConfig, console: Console
) -> None:
    try:
        recipient = normalize_phone(phone, config.login)
    except InvalidPhoneNumber as exc:
        _report(as_json, console, ok=False, recipient=phone, detail=str(exc))
        sys.exit(ExitCode.INPUT_ERROR)

    if config.sandbox:
        console.print(
            "[yellow]No auth endpoint configured.[/yellow] The sandbox only knows codes "
            "issued in the same process; use [cyan]agromart login[/cyan] instead."
        )

    try:
        asyncio.run(_verify_async(recipient, code, config))
    except IncompleteInput as exc:
        _report(as_json, console, ok=False, recipient=recipient, detail=str(exc))
        sys.exit(ExitCode.INPUT_ERROR)
    except VerificationFailed as exc:
        _report(as_json, console, ok=False, recipient=recipient, detail=str(exc.reason))
        if exc.reason == VerifyReason.SERVICE_UNAVAILABLE:
            sys.exit(ExitCode.NETWORK_ERROR)
        sys.exit(ExitCode.VERIFICATION_FAILED)

    _report(as_json, console, ok=True, recipient=recipient, detail="verified")


async def _verify_async(recipient: str, code: str, config: AgromartConfig) -> None:
    service = build_auth_service(config)
    try:
        await verify_once(recipient, code, service)
    finally:
        await service.close()


def _report(as_json: bool, console: Console, *, ok: bool, recipient: str, detail: str) -> None:
    if as_json:
        print(json.dumps({"ok": ok, "recipient": recipient, "detail": detail}))
        return
    if ok:
        console.print(f"[green]Verified[/green] {recipient}")
    else:
        console.print(f"[red]Not verified[/red] {recipient}: {detail}")
