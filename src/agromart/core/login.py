"""
Login request — the phone-number step that precedes the OTP screen.

The user types a local number, ticks the terms checkbox and asks for a code.
On success the normalised recipient (``+91XXXXXXXXXX``) is handed to the OTP
screen as its immutable input.
"""

from __future__ import annotations

import logging
import re

from agromart.auth.base import DispatchService, VerificationService
from agromart.core.config import LoginConfig
from agromart.core.constants import MSG_MISSING_PHONE, MSG_TERMS_NOT_ACCEPTED
from agromart.core.exceptions import (
    DispatchFailed,
    IncompleteInput,
    InvalidPhoneNumber,
    TermsNotAccepted,
    VerificationFailed,
)
from agromart.core.otp.models import VerifyReason

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone(raw: str, config: LoginConfig | None = None) -> str:
    """
    Return *raw* as ``<country code><digits>``.

    Accepts spaces, dashes, dots and parentheses, and an optional leading
    country code (with or without ``+``).
    """
    config = config or LoginConfig()
    number = _SEPARATORS.sub("", raw or "")
    if not number:
        raise InvalidPhoneNumber(MSG_MISSING_PHONE)

    cc_digits = config.country_code.lstrip("+")
    if number.startswith("+"):
        if not number.startswith(config.country_code):
            raise InvalidPhoneNumber(f"Only {config.country_code} numbers are supported")
        number = number[len(config.country_code) :]
    elif len(number) == config.phone_digits + len(cc_digits) and number.startswith(cc_digits):
        number = number[len(cc_digits) :]

    if not number.isdigit() or len(number) != config.phone_digits:
        raise InvalidPhoneNumber(
            f"Phone number must have {config.phone_digits} digits, got {raw!r}"
        )
    return f"{config.country_code}{number}"


async def request_code(
    phone: str,
    agreed: bool,
    dispatcher: DispatchService,
    config: LoginConfig | None = None,
) -> str:
    """
    Validate the login form and send the first code.

    Returns the recipient to open the OTP screen with.

    Raises:
        InvalidPhoneNumber: empty or malformed number.
        TermsNotAccepted:   the terms checkbox is not ticked.
        DispatchFailed:     the dispatch service did not accept the request.
    """
    recipient = normalize_phone(phone, config)
    if not agreed:
        raise TermsNotAccepted(MSG_TERMS_NOT_ACCEPTED)

    logger.info("Sending OTP to %s", recipient)
    outcome = await dispatcher.dispatch(recipient)
    if not outcome.accepted:
        raise DispatchFailed(outcome.reason, outcome.detail)
    return recipient


async def verify_once(recipient: str, code: str, verifier: VerificationService) -> None:
    """
    One-shot verification without a screen (scripts, the ``verify`` command).

    Raises:
        IncompleteInput:    *code* is not all digits.
        VerificationFailed: the service rejected the code.
    """
    code = code.strip()
    if not code or not (code.isascii() and code.isdigit()):
        raise IncompleteInput(f"Not a numeric code: {code!r}")
    try:
        outcome = await verifier.verify(recipient, code)
    except Exception as exc:  # noqa: BLE001
        raise VerificationFailed(VerifyReason.SERVICE_UNAVAILABLE, str(exc)) from exc
    if not outcome.ok:
        raise VerificationFailed(
            outcome.reason or VerifyReason.SERVICE_UNAVAILABLE, outcome.detail
        )
