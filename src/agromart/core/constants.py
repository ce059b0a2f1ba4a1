"""Agromart constants: filesystem layout, OTP defaults, and limits."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    INPUT_ERROR = 3
    NETWORK_ERROR = 4
    VERIFICATION_FAILED = 6


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

AGROMART_DIR_NAME = ".agromart"
CONFIG_FILENAME = "config.toml"

# ---------------------------------------------------------------------------
# OTP defaults
# ---------------------------------------------------------------------------

DEFAULT_CODE_LENGTH = 5
MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 8
DEFAULT_OTP_TTL_SECONDS = 300  # shown as "5:00"
MAX_OTP_TTL_SECONDS = 3600
TICK_INTERVAL_SECONDS = 1.0
DEFAULT_RESEND_COOLDOWN_SECONDS = 0  # 0 = resend always allowed

# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

DEFAULT_COUNTRY_CODE = "+91"
DEFAULT_PHONE_DIGITS = 10

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

DEFAULT_AUTH_TIMEOUT_SECONDS = 10.0

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

MSG_INCOMPLETE_CODE = "Please enter complete OTP"
MSG_MISSING_PHONE = "Please enter your phone number"
MSG_TERMS_NOT_ACCEPTED = "Please agree to terms and conditions"
