"""
Sandbox auth service — in-memory OTP backend for development and demos.

Used when no ``auth.endpoint`` is configured. Codes are random, one per
recipient, and live for ``ttl_seconds``; a new dispatch replaces the previous
code. Instead of an SMS gateway, each code is handed to ``deliver`` (the CLI
prints it to the terminal).
"""

from __future__ import annotations

import hmac
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

from agromart.auth.base import AuthService
from agromart.core.constants import DEFAULT_CODE_LENGTH, DEFAULT_OTP_TTL_SECONDS
from agromart.core.otp.models import (
    DispatchOutcome,
    DispatchReason,
    VerifyOutcome,
    VerifyReason,
)

logger = logging.getLogger(__name__)

DeliverFn = Callable[[str, str], None]


@dataclass
class _IssuedCode:
    code: str
    expires_at: float


class SandboxAuthService(AuthService):
    def __init__(
        self,
        *,
        code_length: int = DEFAULT_CODE_LENGTH,
        ttl_seconds: float = DEFAULT_OTP_TTL_SECONDS,
        deliver: DeliverFn | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.code_length = code_length
        self.ttl_seconds = ttl_seconds
        self._deliver = deliver
        self._clock = clock
        self._issued: dict[str, _IssuedCode] = {}
        self.dispatch_count = 0
        self.verify_count = 0

    def _new_code(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(self.code_length))

    async def dispatch(self, recipient: str) -> DispatchOutcome:
        if not recipient:
            return DispatchOutcome.failure(DispatchReason.INVALID_RECIPIENT, "empty recipient")
        code = self._new_code()
        self._issued[recipient] = _IssuedCode(code, self._clock() + self.ttl_seconds)
        self.dispatch_count += 1
        logger.info("Sandbox issued a code for %s", recipient)
        if self._deliver is not None:
            self._deliver(recipient, code)
        return DispatchOutcome.ok()

    async def verify(self, recipient: str, code: str) -> VerifyOutcome:
        self.verify_count += 1
        issued = self._issued.get(recipient)
        if issued is None:
            return VerifyOutcome.failure(VerifyReason.WRONG_CODE, "no code issued")
        if self._clock() >= issued.expires_at:
            del self._issued[recipient]
            return VerifyOutcome.failure(VerifyReason.EXPIRED)
        if not hmac.compare_digest(issued.code, code):
            return VerifyOutcome.failure(VerifyReason.WRONG_CODE)
        # One-shot: a verified code cannot be replayed
        del self._issued[recipient]
        return VerifyOutcome.success()

    def peek(self, recipient: str) -> str | None:
        """Current code for *recipient* (tests and local tooling only)."""
        issued = self._issued.get(recipient)
        return issued.code if issued else None
