"""
OTP flow data models.

Outcomes returned by the external collaborators (verification, dispatch),
the submission lifecycle, the screen status, and the immutable view
snapshot the rendering layer observes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class VerifyReason(StrEnum):
    WRONG_CODE = "wrong_code"
    EXPIRED = "expired"
    SERVICE_UNAVAILABLE = "service_unavailable"


class DispatchReason(StrEnum):
    INVALID_RECIPIENT = "invalid_recipient"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True)
class VerifyOutcome:
    """Result of VerificationService.verify()."""

    ok: bool
    reason: VerifyReason | None = None
    detail: str = ""

    @classmethod
    def success(cls) -> VerifyOutcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: VerifyReason, detail: str = "") -> VerifyOutcome:
        return cls(ok=False, reason=reason, detail=detail)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of DispatchService.dispatch()."""

    accepted: bool
    reason: DispatchReason | None = None
    detail: str = ""

    @classmethod
    def ok(cls) -> DispatchOutcome:
        return cls(accepted=True)

    @classmethod
    def failure(cls, reason: DispatchReason, detail: str = "") -> DispatchOutcome:
        return cls(accepted=False, reason=reason, detail=detail)


# ---------------------------------------------------------------------------
# Submission lifecycle
# ---------------------------------------------------------------------------


class SubmissionStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmissionState:
    status: SubmissionStatus = SubmissionStatus.IDLE
    reason: VerifyReason | None = None
    detail: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.PENDING


IDLE = SubmissionState()
PENDING = SubmissionState(status=SubmissionStatus.PENDING)
SUCCEEDED = SubmissionState(status=SubmissionStatus.SUCCEEDED)


def failed(reason: VerifyReason, detail: str = "") -> SubmissionState:
    return SubmissionState(status=SubmissionStatus.FAILED, reason=reason, detail=detail)


# ---------------------------------------------------------------------------
# Screen
# ---------------------------------------------------------------------------


class ScreenStatus(StrEnum):
    ENTERING = "entering"
    SUBMITTING = "submitting"
    VERIFIED = "verified"


class SubmitOutcome(StrEnum):
    """What a submit() call on the screen ended up doing."""

    VERIFIED = "verified"
    REJECTED = "rejected"  # service said no; back to entering
    INCOMPLETE = "incomplete"  # not every slot filled; prompt shown
    ALREADY_PENDING = "already_pending"
    CANCELLED = "cancelled"  # superseded by resend or screen torn down
    IGNORED = "ignored"  # screen not accepting submissions (verified/unmounted)


VERIFY_MESSAGES: dict[VerifyReason, str] = {
    VerifyReason.WRONG_CODE: "Invalid OTP",
    VerifyReason.EXPIRED: "OTP has expired, please resend",
    VerifyReason.SERVICE_UNAVAILABLE: "Could not verify OTP right now, please try again",
}

DISPATCH_MESSAGES: dict[DispatchReason, str] = {
    DispatchReason.INVALID_RECIPIENT: "Could not send OTP to this number",
    DispatchReason.RATE_LIMITED: "Please wait before requesting another OTP",
    DispatchReason.SERVICE_UNAVAILABLE: "Could not send OTP right now, please try again",
}


@dataclass(frozen=True)
class ScreenView:
    """Derived UI state. Recomputed after every event; never mutated."""

    recipient: str
    status: ScreenStatus
    slots: tuple[str, ...]
    focus_index: int
    submit_enabled: bool
    resend_pending: bool
    time_display: str
    seconds_remaining: int
    expired: bool
    error: str = ""
    prompt: str = ""
