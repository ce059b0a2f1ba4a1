"""
Resend controller — asks the DispatchService for a fresh code.

Reset policy (``ResendMode``):

    optimistic  → buffer cleared, focus 0, countdown restarted at full
                  duration on request, before the dispatch is awaited
    confirmed   → the same reset, applied only once dispatch is accepted

Either way the dispatch outcome is returned to the caller so a failure can
be shown to the user. An optional cooldown refuses a second dispatch inside
the window without touching any state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from agromart.auth.base import DispatchService
from agromart.core.config import ResendMode
from agromart.core.otp.entry import CodeEntryModel
from agromart.core.otp.models import DispatchOutcome, DispatchReason
from agromart.core.otp.timer import CountdownTimer

logger = logging.getLogger(__name__)


class ResendController:
    def __init__(
        self,
        recipient: str,
        service: DispatchService,
        entry: CodeEntryModel,
        timer: CountdownTimer,
        *,
        mode: ResendMode = ResendMode.OPTIMISTIC,
        cooldown_seconds: float = 0,
        is_live: Callable[[], bool] = lambda: True,
        on_reset: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.recipient = recipient
        self.mode = mode
        self.cooldown_seconds = cooldown_seconds
        self._service = service
        self._entry = entry
        self._timer = timer
        self._is_live = is_live
        self._on_reset = on_reset
        self._clock = clock
        self._last_dispatch: float | None = None
        self.in_flight = 0

    def cooldown_remaining(self) -> float:
        if self.cooldown_seconds <= 0 or self._last_dispatch is None:
            return 0.0
        return max(0.0, self.cooldown_seconds - (self._clock() - self._last_dispatch))

    async def resend(self) -> DispatchOutcome | None:
        """Dispatch a fresh code. Returns None once the owning screen is closed."""
        if not self._is_live():
            logger.debug("Resend to %s skipped: screen closed", self.recipient)
            return None
        wait = self.cooldown_remaining()
        if wait > 0:
            logger.info("Resend to %s refused: cooldown %.0fs left", self.recipient, wait)
            return DispatchOutcome.failure(
                DispatchReason.RATE_LIMITED, f"retry in {int(wait) + 1}s"
            )

        self._last_dispatch = self._clock()
        if self.mode == ResendMode.OPTIMISTIC:
            self._reset()

        logger.info("Resending OTP to %s (%s)", self.recipient, self.mode)
        self.in_flight += 1
        try:
            outcome = await self._service.dispatch(self.recipient)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Dispatch service error for %s: %s", self.recipient, exc)
            outcome = DispatchOutcome.failure(DispatchReason.SERVICE_UNAVAILABLE, str(exc))
        finally:
            self.in_flight -= 1

        if not self._is_live():
            return outcome

        if outcome.accepted:
            if self.mode == ResendMode.CONFIRMED:
                self._reset()
        else:
            logger.warning("Resend to %s failed: %s", self.recipient, outcome.reason)
            self._last_dispatch = None
        return outcome

    def _reset(self) -> None:
        self._entry.reset()
        self._timer.start()
        if self._on_reset is not None:
            self._on_reset()
