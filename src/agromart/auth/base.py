"""
Collaborator interfaces for the OTP flow.

The core never talks to a backend directly. It calls these interfaces and
interprets the outcome objects they return.

Contract:
  - verify()/dispatch() return outcomes for expected failures (wrong code,
    expired code, rate limiting) rather than raising
  - Implementations may still raise on programming errors; the core maps any
    exception to a ``service_unavailable`` outcome
  - The recipient is passed through verbatim; no lookup happens here
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from agromart.core.otp.models import DispatchOutcome, VerifyOutcome


class VerificationService(ABC):
    """Checks a code the user typed against the one sent to the recipient."""

    @abstractmethod
    async def verify(self, recipient: str, code: str) -> VerifyOutcome:
        """Return success, or failure with a VerifyReason."""
        ...


class DispatchService(ABC):
    """Sends a fresh code to the recipient."""

    @abstractmethod
    async def dispatch(self, recipient: str) -> DispatchOutcome:
        """Return accepted, or failure with a DispatchReason.

        Accepted means the request was taken, not that the SMS was delivered.
        """
        ...


class AuthService(VerificationService, DispatchService):
    """Convenience base for backends that implement both halves."""

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""


class Navigator(ABC):
    """Router the screen hands control to when the flow ends."""

    @abstractmethod
    async def open_authenticated_area(self, recipient: str) -> None:
        """Called exactly once, when the code has been verified."""
        ...

    @abstractmethod
    async def go_back(self) -> None:
        """Called on explicit back-navigation from the entry state."""
        ...
