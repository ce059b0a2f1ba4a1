"""
agromart.auth — OTP dispatch/verification collaborators.

    base.py     VerificationService, DispatchService, Navigator interfaces
    http.py     HttpAuthService — JSON API over httpx
    sandbox.py  SandboxAuthService — in-memory codes for local use

``build_auth_service()`` picks the implementation from ``[auth]``: an
empty endpoint means sandbox.
"""

from __future__ import annotations

from agromart.auth.base import AuthService
from agromart.auth.sandbox import DeliverFn
from agromart.core.config import AgromartConfig


def build_auth_service(config: AgromartConfig, deliver: DeliverFn | None = None) -> AuthService:
    if config.sandbox:
        from agromart.auth.sandbox import SandboxAuthService

        return SandboxAuthService(
            code_length=config.otp.code_length,
            ttl_seconds=config.otp.ttl_seconds,
            deliver=deliver,
        )

    from agromart.auth.http import HttpAuthService

    return HttpAuthService.from_config(config.auth)
