"""
Countdown timer — per-screen asyncio task that ticks once per second.

The timer owns only its own state. The screen reacts through the optional
``on_tick`` callback; expiry is not an error, it simply stops ticking.

Lifecycle::

    timer = CountdownTimer(300, on_tick=screen_changed)
    timer.start()          # "5:00", then "4:59" one second later ...
    timer.start()          # restart at full duration (resend)
    timer.cancel()         # screen teardown; value is left as-is
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from agromart.core.constants import DEFAULT_OTP_TTL_SECONDS, TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


def format_remaining(seconds: int) -> str:
    """Render seconds as ``M:SS`` — 300 → "5:00", 59 → "0:59"."""
    seconds = max(0, seconds)
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


class CountdownTimer:
    def __init__(
        self,
        duration: int = DEFAULT_OTP_TTL_SECONDS,
        *,
        interval: float = TICK_INTERVAL_SECONDS,
        on_tick: TickCallback | None = None,
    ) -> None:
        if duration < 0:
            raise ValueError("duration must be >= 0")
        self.duration = duration
        self.interval = interval
        self.on_tick = on_tick
        self.seconds_remaining = duration
        self.running = False
        self._task: asyncio.Task[None] | None = None
        self._expired = asyncio.Event()

    @property
    def expired(self) -> bool:
        return self.seconds_remaining == 0

    @property
    def scheduled(self) -> bool:
        """True while a tick task is alive on the event loop."""
        return self._task is not None and not self._task.done()

    def start(self, duration: int | None = None) -> None:
        """(Re)start from *duration* (default: the configured duration)."""
        self._stop_task()
        self.seconds_remaining = self.duration if duration is None else duration
        self.running = self.seconds_remaining > 0
        if self.running:
            self._expired.clear()
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name="otp_countdown"
            )
        else:
            self._expired.set()

    def tick(self) -> None:
        """Advance one second. No-op once stopped or at zero."""
        if not self.running or self.seconds_remaining <= 0:
            return
        self.seconds_remaining -= 1
        if self.seconds_remaining == 0:
            self.running = False
            self._expired.set()
            logger.debug("Countdown reached 0:00")
        if self.on_tick is not None:
            self.on_tick(self.seconds_remaining)

    def cancel(self) -> None:
        """Stop ticking without touching the displayed value."""
        self.running = False
        self._stop_task()

    def display(self) -> str:
        return format_remaining(self.seconds_remaining)

    async def wait_expired(self) -> None:
        await self._expired.wait()

    async def _run(self) -> None:
        # Tick n is due at start + n * interval.
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while self.running:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("Countdown observer failed at %ds", self.seconds_remaining)

    def _stop_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
