"""agromart login — request a code and run the OTP screen in the terminal."""

from __future__ import annotations

import asyncio
import sys

from rich.console import Console
from rich.text import Text

from agromart.auth import build_auth_service
from agromart.auth.base import Navigator
from agromart.core.config import AgromartConfig
from agromart.core.constants import ExitCode
from agromart.core.exceptions import DispatchFailed, LoginError
from agromart.core.login import request_code
from agromart.core.otp.models import ScreenView, SubmitOutcome
from agromart.core.otp.screen import OtpScreen

HELP = (
    "Type digits to fill the boxes (several at once to paste), "
    "[cyan]-[/cyan] for backspace, [cyan]r[/cyan] to resend, "
    "[cyan]q[/cyan] to go back, Enter to verify."
)


class ConsoleNavigator(Navigator):
    """Terminal stand-in for the app router."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self.destination = ""

    async def open_authenticated_area(self, recipient: str) -> None:
        self.destination = "home"
        self.console.print(f"[green]Verified.[/green] Signed in as [bold]{recipient}[/bold].")

    async def go_back(self) -> None:
        self.destination = "login"
        self.console.print("[yellow]Back to login.[/yellow]")


def render_view(view: ScreenView) -> Text:
    """One line of boxes plus the countdown, then any error or prompt."""
    text = Text()
    for i, slot in enumerate(view.slots):
        if i == view.focus_index:
            style = "bold reverse"
        elif slot:
            style = "bold cyan"
        else:
            style = "dim"
        text.append(f" {slot or '·'} ", style=style)
        text.append(" ")
    text.append(f"  {view.time_display}", style="red" if view.expired else "bold")
    if view.resend_pending:
        text.append("  sending…", style="dim")
    if view.error:
        text.append(f"\n{view.error}", style="red")
    if view.prompt:
        text.append(f"\n{view.prompt}", style="yellow")
    return text


def cmd_login(phone: str, agreed: bool, config: AgromartConfig, console: Console) -> None:
    if config.sandbox:
        console.print("[dim]No auth endpoint configured, using the local sandbox.[/dim]")
    try:
        exit_code = asyncio.run(
            _login_async(phone=phone, agreed=agreed, config=config, console=console)
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(ExitCode.SUCCESS)
    sys.exit(exit_code)


async def _login_async(
    phone: str, agreed: bool, config: AgromartConfig, console: Console
) -> ExitCode:
    def deliver(recipient: str, code: str) -> None:
        console.print(f"[dim]sandbox SMS to {recipient}:[/dim] [bold]{code}[/bold]")

    service = build_auth_service(config, deliver=deliver)
    try:
        try:
            recipient = await request_code(phone, agreed, service, config.login)
        except LoginError as exc:
            console.print(f"[red]{exc}[/red]")
            return ExitCode.INPUT_ERROR
        except DispatchFailed as exc:
            console.print(f"[red]Could not send OTP:[/red] {exc}")
            return ExitCode.NETWORK_ERROR

        console.print(f"An OTP has been sent to [bold]{recipient}[/bold].")
        navigator = ConsoleNavigator(console)
        async with OtpScreen.from_config(config, recipient, service, service, navigator) as screen:
            return await _interact(screen, console)
    finally:
        await service.close()


async def _interact(screen: OtpScreen, console: Console) -> ExitCode:
    console.print(HELP)
    while screen.live and not screen.is_terminal:
        console.print(render_view(screen.view()))
        try:
            line = (await asyncio.to_thread(console.input, "> ")).strip()
        except EOFError:
            await screen.back()
            return ExitCode.ERROR

        command = line.lower()
        if command == "q":
            await screen.back()
            return ExitCode.ERROR
        if command == "r":
            outcome = await screen.resend()
            if outcome is not None and outcome.accepted:
                console.print("OTP resent.")
        elif command in ("-", "<"):
            screen.backspace()
        elif not command:
            outcome = await screen.submit()
            if outcome == SubmitOutcome.VERIFIED:
                return ExitCode.SUCCESS
        elif len(command) == 1:
            screen.enter_digit(screen.entry.focus_index, command)
        elif not screen.paste(command) and not screen.paste(command, start=0):
            console.print(f"[dim]Ignored {line!r}[/dim]")
    return ExitCode.SUCCESS if screen.is_terminal else ExitCode.ERROR
