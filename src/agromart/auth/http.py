"""
HTTP auth service — OTP dispatch and verification over a JSON API.

Endpoints (relative to ``auth.endpoint``)::

    POST /otp/send    {"phone": "+919876543210"}
    POST /otp/verify  {"phone": "+919876543210", "code": "12345"}

Status mapping:
    2xx             → success / accepted
    400, 401, 422   → Expired if body says ``{"error": "expired"}``,
                      else WrongCode (verify) / InvalidRecipient (send)
    410             → Expired
    429             → RateLimited (send) / ServiceUnavailable (verify)
    5xx, timeouts,
    transport errors → ServiceUnavailable
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from agromart import __version__
from agromart.auth.base import AuthService
from agromart.core.config import AuthConfig
from agromart.core.otp.models import (
    DispatchOutcome,
    DispatchReason,
    VerifyOutcome,
    VerifyReason,
)

logger = logging.getLogger(__name__)

SEND_PATH = "/otp/send"
VERIFY_PATH = "/otp/verify"


def _error_detail(resp: httpx.Response) -> tuple[str, str]:
    """Return (error_code, message) from a JSON error body, if any."""
    try:
        body = resp.json()
    except ValueError:
        return "", resp.text[:200]
    if not isinstance(body, dict):
        return "", ""
    code = str(body.get("error", "")).lower()
    message = str(body.get("message") or body.get("detail") or "")
    return code, message


class HttpAuthService(AuthService):
    """
    httpx-based implementation of both collaborator interfaces.

    Usage::

        service = HttpAuthService.from_config(config.auth)
        outcome = await service.dispatch("+919876543210")
        await service.close()
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"User-Agent": f"agromart-otp/{__version__}", "Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=endpoint.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: AuthConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> HttpAuthService:
        token = config.api_token.get_secret_value() if config.api_token else ""
        return cls(
            config.endpoint,
            api_token=token,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpAuthService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # DispatchService
    # ------------------------------------------------------------------

    async def dispatch(self, recipient: str) -> DispatchOutcome:
        resp = await self._post(SEND_PATH, {"phone": recipient})
        if resp is None:
            return DispatchOutcome.failure(
                DispatchReason.SERVICE_UNAVAILABLE, "could not reach auth service"
            )
        if resp.is_success:
            return DispatchOutcome.ok()

        _, message = _error_detail(resp)
        if resp.status_code == 429:
            return DispatchOutcome.failure(DispatchReason.RATE_LIMITED, message)
        if resp.status_code in (400, 401, 404, 422):
            return DispatchOutcome.failure(DispatchReason.INVALID_RECIPIENT, message)
        logger.error("OTP send failed: HTTP %d %s", resp.status_code, message)
        return DispatchOutcome.failure(
            DispatchReason.SERVICE_UNAVAILABLE, f"HTTP {resp.status_code}"
        )

    # ------------------------------------------------------------------
    # VerificationService
    # ------------------------------------------------------------------

    async def verify(self, recipient: str, code: str) -> VerifyOutcome:
        resp = await self._post(VERIFY_PATH, {"phone": recipient, "code": code})
        if resp is None:
            return VerifyOutcome.failure(
                VerifyReason.SERVICE_UNAVAILABLE, "could not reach auth service"
            )
        if resp.is_success:
            return VerifyOutcome.success()

        error_code, message = _error_detail(resp)
        rejected = resp.status_code in (400, 401, 422)
        if resp.status_code == 410 or (rejected and error_code == "expired"):
            return VerifyOutcome.failure(VerifyReason.EXPIRED, message)
        if rejected:
            return VerifyOutcome.failure(VerifyReason.WRONG_CODE, message)
        logger.error("OTP verify failed: HTTP %d %s", resp.status_code, message)
        return VerifyOutcome.failure(
            VerifyReason.SERVICE_UNAVAILABLE, f"HTTP {resp.status_code}"
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response | None:
        try:
            return await self._client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("Auth service timed out on %s: %s", path, exc)
        except httpx.HTTPError as exc:
            logger.warning("Auth service unreachable on %s: %s", path, exc)
        return None
