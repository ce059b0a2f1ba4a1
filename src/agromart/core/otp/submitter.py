"""
Verification submitter — validates a code and calls the VerificationService.

Transitions (the only way SubmissionState changes)::

    Idle/Succeeded/Failed --submit--> Pending --success--> Succeeded
                                              --failure--> Failed(reason)

A second submit() while Pending raises AlreadyPending and does not reach the
service. The result of the service call is applied only while the owning
screen is still live.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from agromart.auth.base import VerificationService
from agromart.core.exceptions import AlreadyPending, IncompleteInput
from agromart.core.otp.models import (
    IDLE,
    PENDING,
    SUCCEEDED,
    SubmissionState,
    VerifyOutcome,
    VerifyReason,
    failed,
)

logger = logging.getLogger(__name__)


def _always_live() -> bool:
    return True


class VerificationSubmitter:
    def __init__(
        self,
        recipient: str,
        service: VerificationService,
        code_length: int,
        is_live: Callable[[], bool] = _always_live,
    ) -> None:
        self.recipient = recipient
        self.code_length = code_length
        self._service = service
        self._is_live = is_live
        self._state: SubmissionState = IDLE

    @property
    def state(self) -> SubmissionState:
        return self._state

    async def submit(self, code: str) -> SubmissionState:
        """
        Verify *code* for the recipient.

        Raises:
            IncompleteInput: *code* is not exactly ``code_length`` digits.
            AlreadyPending:  a previous submit() has not resolved yet.
        """
        if len(code) != self.code_length or not (code.isascii() and code.isdigit()):
            raise IncompleteInput(f"Expected {self.code_length} digits, got {len(code)}")
        if self._state.is_pending:
            raise AlreadyPending("A verification is already in flight")

        self._state = PENDING
        logger.info("Verifying OTP for %s", self.recipient)
        try:
            outcome = await self._service.verify(self.recipient, code)
        except asyncio.CancelledError:
            if self._is_live():
                self._state = IDLE
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Verification service error for %s: %s", self.recipient, exc)
            outcome = VerifyOutcome.failure(VerifyReason.SERVICE_UNAVAILABLE, str(exc))

        if not self._is_live():
            logger.debug("Dropping verification result for closed screen (%s)", self.recipient)
            return self._state

        if outcome.ok:
            self._state = SUCCEEDED
            logger.info("OTP verified for %s", self.recipient)
        else:
            reason = outcome.reason or VerifyReason.SERVICE_UNAVAILABLE
            self._state = failed(reason, outcome.detail)
            logger.warning("OTP rejected for %s: %s", self.recipient, reason)
        return self._state

    def reset(self) -> None:
        """Forget the current attempt (superseded by resend or teardown)."""
        self._state = IDLE
