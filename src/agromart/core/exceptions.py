"""Agromart exception hierarchy."""

from __future__ import annotations


class AgromartError(Exception):
    """Base exception for all Agromart errors."""


class ConfigError(AgromartError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


# ---------------------------------------------------------------------------
# OTP flow
# ---------------------------------------------------------------------------


class OtpError(AgromartError):
    """Base class for errors raised by the OTP entry and verification flow."""


class InvalidInput(OtpError):
    """Raised when a keystroke is not a single decimal digit (or a clear)."""


class IncompleteInput(OtpError):
    """Raised when a code is submitted before every slot holds a digit."""


class AlreadyPending(OtpError):
    """Raised when a verification is submitted while another is in flight."""


class VerificationFailed(OtpError):
    """Raised when the verification service rejects a code."""

    def __init__(self, reason: object, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"Verification failed: {reason}" + (f" ({detail})" if detail else ""))


class DispatchFailed(OtpError):
    """Raised when a code could not be sent to the recipient."""

    def __init__(self, reason: object, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"Dispatch failed: {reason}" + (f" ({detail})" if detail else ""))


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class LoginError(AgromartError):
    """Raised when the login request cannot proceed to the OTP step."""


class InvalidPhoneNumber(LoginError):
    """Raised when the phone number is missing or malformed."""


class TermsNotAccepted(LoginError):
    """Raised when the user has not agreed to the terms and conditions."""
