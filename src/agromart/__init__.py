"""
Agromart OTP — one-time-passcode entry and verification flow.

The storefront signs users in with a phone number and a short numeric code.
This package holds the part of that flow with real state behaviour: the
segmented code input, the countdown timer, resend and verification.

Package layout (src/agromart/):
  core/       — config, constants, exceptions, logging, login step
  core/otp/   — code entry model, countdown timer, resend, submitter, screen
  auth/       — verification/dispatch collaborators (HTTP, sandbox)
  cli/        — Click CLI entry point
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
