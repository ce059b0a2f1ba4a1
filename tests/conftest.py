"""Shared fakes for the OTP flow tests."""

from __future__ import annotations

import asyncio

import pytest

from agromart.auth.base import AuthService, Navigator
from agromart.core.otp.models import DispatchOutcome, VerifyOutcome


class FakeAuthService(AuthService):
    """
    Scriptable verification/dispatch backend.

    Outcomes are popped from the queues in order; once a queue is empty the
    default (success / accepted) is returned. Set ``gate`` to hold every call
    until the test releases it.
    """

    def __init__(self) -> None:
        self.verify_calls: list[tuple[str, str]] = []
        self.dispatch_calls: list[str] = []
        self.verify_outcomes: list[VerifyOutcome | Exception] = []
        self.dispatch_outcomes: list[DispatchOutcome | Exception] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def verify(self, recipient: str, code: str) -> VerifyOutcome:
        self.verify_calls.append((recipient, code))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.verify_outcomes.pop(0) if self.verify_outcomes else VerifyOutcome.success()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def dispatch(self, recipient: str) -> DispatchOutcome:
        self.dispatch_calls.append(recipient)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.dispatch_outcomes.pop(0) if self.dispatch_outcomes else DispatchOutcome.ok()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


class RecordingNavigator(Navigator):
    def __init__(self) -> None:
        self.opened: list[str] = []
        self.back_count = 0

    async def open_authenticated_area(self, recipient: str) -> None:
        self.opened.append(recipient)

    async def go_back(self) -> None:
        self.back_count += 1


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def service() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
