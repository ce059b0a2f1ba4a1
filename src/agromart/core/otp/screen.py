"""
OTP screen controller — composes entry, countdown, resend and submission.

State machine::

    ENTERING ──submit (complete)──▶ SUBMITTING ──success──▶ VERIFIED (terminal)
        ▲                               │
        └───────failure / resend────────┘
    ENTERING ──resend──▶ ENTERING

The screen owns all of its state. It is mounted once (countdown starts) and
unmounted once (countdown and in-flight work cancelled); after unmount no
late result may change it. Use it as an async context manager::

    async with OtpScreen(recipient, service, service, navigator) as screen:
        screen.enter_digit(0, "1")
        ...
        outcome = await screen.submit()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from agromart.auth.base import DispatchService, Navigator, VerificationService
from agromart.core.config import AgromartConfig, ResendMode
from agromart.core.constants import (
    DEFAULT_CODE_LENGTH,
    DEFAULT_OTP_TTL_SECONDS,
    MSG_INCOMPLETE_CODE,
    TICK_INTERVAL_SECONDS,
)
from agromart.core.exceptions import AlreadyPending, IncompleteInput, InvalidInput
from agromart.core.otp.entry import CodeEntryModel
from agromart.core.otp.models import (
    DISPATCH_MESSAGES,
    VERIFY_MESSAGES,
    DispatchOutcome,
    ScreenStatus,
    ScreenView,
    SubmissionStatus,
    SubmitOutcome,
    VerifyReason,
)
from agromart.core.otp.resend import ResendController
from agromart.core.otp.submitter import VerificationSubmitter
from agromart.core.otp.timer import CountdownTimer

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[ScreenStatus, set[ScreenStatus]] = {
    ScreenStatus.ENTERING: {ScreenStatus.SUBMITTING, ScreenStatus.ENTERING},
    ScreenStatus.SUBMITTING: {ScreenStatus.VERIFIED, ScreenStatus.ENTERING},
    ScreenStatus.VERIFIED: set(),
}

TERMINAL_STATES = frozenset({ScreenStatus.VERIFIED})

ChangeCallback = Callable[[ScreenView], None]
TransitionCallback = Callable[[ScreenStatus, ScreenStatus], None]


class OtpScreen:
    """One OTP verification screen for one recipient."""

    def __init__(
        self,
        recipient: str,
        verifier: VerificationService,
        dispatcher: DispatchService,
        navigator: Navigator,
        *,
        code_length: int = DEFAULT_CODE_LENGTH,
        ttl_seconds: int = DEFAULT_OTP_TTL_SECONDS,
        resend_mode: ResendMode = ResendMode.OPTIMISTIC,
        resend_cooldown_seconds: float = 0,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        on_change: ChangeCallback | None = None,
        on_transition: TransitionCallback | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.recipient = recipient
        self.entry = CodeEntryModel(code_length)
        self.timer = CountdownTimer(ttl_seconds, interval=tick_interval, on_tick=self._on_tick)
        self._navigator = navigator
        self._submitter = VerificationSubmitter(
            recipient, verifier, code_length, is_live=lambda: self.live
        )
        resend_kwargs: dict[str, Any] = {}
        if clock is not None:
            resend_kwargs["clock"] = clock
        self._resend = ResendController(
            recipient,
            dispatcher,
            self.entry,
            self.timer,
            mode=resend_mode,
            cooldown_seconds=resend_cooldown_seconds,
            is_live=lambda: self.live,
            on_reset=self._changed,
            **resend_kwargs,
        )
        self._on_change = on_change
        self._on_transition = on_transition

        self._status = ScreenStatus.ENTERING
        self.history: list[tuple[ScreenStatus, datetime, str]] = []
        self.error = ""
        self.prompt = ""
        self._mounted = False
        self._closed = False
        self._navigated = False
        self._verify_task: asyncio.Task[Any] | None = None
        self._superseded: set[asyncio.Task[Any]] = set()
        self._background: set[asyncio.Task[Any]] = set()

    @classmethod
    def from_config(
        cls,
        config: AgromartConfig,
        recipient: str,
        verifier: VerificationService,
        dispatcher: DispatchService,
        navigator: Navigator,
        **kwargs: Any,
    ) -> OtpScreen:
        return cls(
            recipient,
            verifier,
            dispatcher,
            navigator,
            code_length=config.otp.code_length,
            ttl_seconds=config.otp.ttl_seconds,
            resend_mode=config.otp.resend_mode,
            resend_cooldown_seconds=config.otp.resend_cooldown_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def live(self) -> bool:
        return self._mounted and not self._closed

    @property
    def status(self) -> ScreenStatus:
        return self._status

    @property
    def submission(self) -> SubmissionStatus:
        return self._submitter.state.status

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_STATES

    async def mount(self) -> None:
        """Start the countdown. Idempotent; a screen cannot be remounted."""
        if self._mounted:
            return
        if self._closed:
            raise RuntimeError("OtpScreen cannot be mounted after unmount()")
        self._mounted = True
        self.timer.start()
        logger.info("OTP screen mounted for %s (%ss)", self.recipient, self.timer.duration)
        self._changed()

    async def unmount(self) -> None:
        """Cancel the countdown and all in-flight work. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.timer.cancel()
        current = asyncio.current_task()
        pending = [
            t
            for t in (self._verify_task, *self._background)
            if t is not None and not t.done() and t is not current
        ]
        for task in pending:
            self._superseded.add(task)
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()
        logger.info("OTP screen closed for %s", self.recipient)

    async def __aenter__(self) -> OtpScreen:
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------

    def enter_digit(self, index: int, char: str) -> bool:
        """Keystroke in slot *index*. Non-digits are dropped silently."""
        if not self._accepts_input():
            return False
        try:
            self.entry.set_digit(index, char)
        except InvalidInput as exc:
            logger.debug("Ignored keystroke: %s", exc)
            return False
        self.prompt = ""
        self._changed()
        return True

    def backspace(self, index: int | None = None) -> bool:
        if not self._accepts_input():
            return False
        try:
            self.entry.handle_backspace(self.entry.focus_index if index is None else index)
        except InvalidInput as exc:
            logger.debug("Ignored backspace: %s", exc)
            return False
        self._changed()
        return True

    def paste(self, text: str, start: int | None = None) -> bool:
        """Autofill several digits at once (SMS autofill, clipboard)."""
        if not self._accepts_input():
            return False
        try:
            self.entry.paste(text.strip(), self.entry.focus_index if start is None else start)
        except InvalidInput as exc:
            logger.debug("Ignored paste: %s", exc)
            return False
        self.prompt = ""
        self._changed()
        return True

    def focus(self, index: int) -> bool:
        if not self._accepts_input():
            return False
        try:
            self.entry.focus(index)
        except InvalidInput:
            return False
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit(self) -> SubmitOutcome:
        """Verify the buffered code. Never raises for expected failures."""
        if not self.live or self.is_terminal:
            return SubmitOutcome.IGNORED
        if self._status == ScreenStatus.SUBMITTING or self._submitter.state.is_pending:
            logger.debug("Submit ignored: verification already pending")
            return SubmitOutcome.ALREADY_PENDING
        if not self.entry.is_complete():
            self.prompt = MSG_INCOMPLETE_CODE
            self._changed()
            return SubmitOutcome.INCOMPLETE

        self.error = ""
        self.prompt = ""
        self._transition(ScreenStatus.SUBMITTING, "submit")
        self._changed()

        task = asyncio.get_running_loop().create_task(
            self._submitter.submit(self.entry.joined()), name="otp_verify"
        )
        self._verify_task = task
        try:
            state = await task
        except asyncio.CancelledError:
            if task in self._superseded:
                self._superseded.discard(task)
                return SubmitOutcome.CANCELLED
            if self.live and self._status == ScreenStatus.SUBMITTING:
                self._transition(ScreenStatus.ENTERING, "cancelled")
            raise
        except (AlreadyPending, IncompleteInput) as exc:
            logger.warning("Submit rejected by submitter: %s", exc)
            self._transition(ScreenStatus.ENTERING, str(exc))
            self._changed()
            if isinstance(exc, AlreadyPending):
                return SubmitOutcome.ALREADY_PENDING
            return SubmitOutcome.INCOMPLETE
        finally:
            if self._verify_task is task:
                self._verify_task = None

        if not self.live or task in self._superseded:
            self._superseded.discard(task)
            return SubmitOutcome.CANCELLED

        if state.status == SubmissionStatus.SUCCEEDED:
            self._transition(ScreenStatus.VERIFIED, "verified")
            self.timer.cancel()
            self._changed()
            await self._open_authenticated_area()
            return SubmitOutcome.VERIFIED

        reason = state.reason or VerifyReason.SERVICE_UNAVAILABLE
        self.error = VERIFY_MESSAGES[reason]
        self._transition(ScreenStatus.ENTERING, f"rejected: {reason}")
        self._changed()
        return SubmitOutcome.REJECTED

    # ------------------------------------------------------------------
    # Resend / back
    # ------------------------------------------------------------------

    async def resend(self) -> DispatchOutcome | None:
        """
        Request a fresh code. Returns the dispatch outcome, or None when the
        screen no longer accepts resends (verified or unmounted).
        """
        if not self.live or self.is_terminal:
            return None
        if self._status == ScreenStatus.SUBMITTING:
            await self._cancel_verification()
            if not self.live:
                return None
        self.error = ""
        self.prompt = ""
        self._transition(ScreenStatus.ENTERING, "resend")

        outcome = await self._resend.resend()
        if outcome is None or not self.live:
            return outcome
        if not outcome.accepted and outcome.reason is not None:
            self.error = DISPATCH_MESSAGES[outcome.reason]
            if outcome.detail:
                self.error += f" ({outcome.detail})"
        self._changed()
        return outcome

    def request_resend(self) -> asyncio.Task[DispatchOutcome | None] | None:
        """Fire-and-forget resend; the task is cancelled on unmount."""
        if not self.live or self.is_terminal:
            return None
        task = asyncio.get_running_loop().create_task(self.resend(), name="otp_resend")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def back(self) -> bool:
        """Leave the flow without verifying. Only allowed while entering."""
        if not self.live or self._status != ScreenStatus.ENTERING:
            return False
        logger.info("Back-navigation from OTP screen (%s)", self.recipient)
        await self._navigator.go_back()
        return True

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def view(self) -> ScreenView:
        return ScreenView(
            recipient=self.recipient,
            status=self._status,
            slots=self.entry.slots,
            focus_index=self.entry.focus_index,
            submit_enabled=(
                self.live
                and self._status == ScreenStatus.ENTERING
                and self.entry.is_complete()
            ),
            resend_pending=self._resend.in_flight > 0,
            time_display=self.timer.display(),
            seconds_remaining=self.timer.seconds_remaining,
            expired=self.timer.expired,
            error=self.error,
            prompt=self.prompt,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _accepts_input(self) -> bool:
        return self.live and not self.is_terminal

    def _transition(self, new_status: ScreenStatus, reason: str = "") -> None:
        old = self._status
        if new_status not in VALID_TRANSITIONS[old]:
            raise ValueError(f"Invalid transition {old} → {new_status}")
        self._status = new_status
        self.history.append((new_status, datetime.now(UTC), reason))
        logger.debug("OTP screen %s: %s → %s (%s)", self.recipient, old, new_status, reason)
        if self._on_transition is not None:
            self._on_transition(old, new_status)

    def _changed(self) -> None:
        if self._on_change is not None and self.live:
            self._on_change(self.view())

    def _on_tick(self, seconds_remaining: int) -> None:
        self._changed()

    async def _cancel_verification(self) -> None:
        task = self._verify_task
        if task is not None:
            self._superseded.add(task)
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        self._submitter.reset()

    async def _open_authenticated_area(self) -> None:
        if self._navigated:
            return
        self._navigated = True
        await self._navigator.open_authenticated_area(self.recipient)
