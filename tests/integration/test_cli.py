"""Integration tests for the agromart CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from agromart import __version__
from agromart.cli.main import cli
from agromart.core.constants import ExitCode
from agromart.core.otp.models import DispatchOutcome, DispatchReason, VerifyOutcome, VerifyReason

if TYPE_CHECKING:
    from tests.conftest import FakeAuthService

BASE_ENV = {
    "AGROMART_AUTH_ENDPOINT": "",
    "AGROMART_AUTH_API_TOKEN": "",
    "AGROMART_OTP_TTL_SECONDS": "",
    "AGROMART_OTP_RESEND_MODE": "",
    "AGROMART_LOG_LEVEL": "WARNING",
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    return {**BASE_ENV, "AGROMART_CONFIG": str(tmp_path / "config.toml")}


def _json_line(output: str) -> dict:
    """Return the last line of *output* that parses as a JSON object."""
    for line in reversed(output.strip().splitlines()):
        try:
            return json.loads(line)
        except ValueError:
            continue
    raise AssertionError(f"no JSON in output: {output!r}")


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


class TestVersion:
    def test_version_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["agromart"] == __version__


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_then_refuse_overwrite(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        cfg = tmp_path / "config.toml"
        result = runner.invoke(cli, ["config", "init"], env=env, catch_exceptions=False)
        assert result.exit_code == 0
        assert cfg.exists()

        again = runner.invoke(cli, ["config", "init"], env=env)
        assert again.exit_code == ExitCode.CONFIG_ERROR

        forced = runner.invoke(cli, ["config", "init", "--force"], env=env)
        assert forced.exit_code == 0

    def test_show_json_redacts_token(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text(
            '[otp]\ncode_length = 6\n\n[auth]\nendpoint = "https://auth.example.com"\n'
            'api_token = "s3cret"\n',
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["config", "show", "--json"], env=env, catch_exceptions=False)
        assert result.exit_code == 0
        assert "s3cret" not in result.output

        data = json.loads(result.output[result.output.index("{") :])
        assert data["source"] == str(cfg)
        assert data["config"]["otp"]["code_length"] == 6
        assert data["config"]["auth"]["api_token"] == "***"

    def test_show_defaults_without_file(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["config", "show"], env=env, catch_exceptions=False)
        assert result.exit_code == 0
        assert "built-in defaults" in result.output
        assert "sandbox" in result.output

    def test_explicit_missing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["--config", str(tmp_path / "missing.toml"), "config", "show"], env=BASE_ENV
        )
        assert result.exit_code == ExitCode.CONFIG_ERROR

    def test_invalid_config(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        (tmp_path / "config.toml").write_text("[otp]\nttl_seconds = 0\n", encoding="utf-8")
        result = runner.invoke(cli, ["config", "show"], env=env)
        assert result.exit_code == ExitCode.CONFIG_ERROR


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------


class TestVerifyCommand:
    @pytest.fixture(autouse=True)
    def fake_backend(self, monkeypatch: pytest.MonkeyPatch, service: FakeAuthService) -> None:
        monkeypatch.setattr(
            "agromart.cli._verify.build_auth_service", lambda config, deliver=None: service
        )

    def test_verified(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        env = {**env, "AGROMART_AUTH_ENDPOINT": "https://auth.example.com"}
        result = runner.invoke(
            cli, ["verify", "98765 43210", "12345", "--json"], env=env, catch_exceptions=False
        )
        assert result.exit_code == 0
        assert _json_line(result.output) == {
            "ok": True,
            "recipient": "+919876543210",
            "detail": "verified",
        }
        assert service.verify_calls == [("+919876543210", "12345")]
        assert service.closed

    def test_wrong_code(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        service.verify_outcomes.append(VerifyOutcome.failure(VerifyReason.WRONG_CODE))
        result = runner.invoke(cli, ["verify", "9876543210", "00000", "--json"], env=env)
        assert result.exit_code == ExitCode.VERIFICATION_FAILED
        data = _json_line(result.output)
        assert data["ok"] is False
        assert data["detail"] == "wrong_code"

    def test_service_down(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        service.verify_outcomes.append(VerifyOutcome.failure(VerifyReason.SERVICE_UNAVAILABLE))
        result = runner.invoke(cli, ["verify", "9876543210", "12345"], env=env)
        assert result.exit_code == ExitCode.NETWORK_ERROR
        assert "Not verified" in result.output

    def test_bad_phone(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["verify", "123", "12345", "--json"], env=env)
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert _json_line(result.output)["ok"] is False

    def test_non_numeric_code(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        result = runner.invoke(cli, ["verify", "9876543210", "abcde"], env=env)
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert service.verify_calls == []


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


class TestLoginCommand:
    @pytest.fixture(autouse=True)
    def fake_backend(self, monkeypatch: pytest.MonkeyPatch, service: FakeAuthService) -> None:
        monkeypatch.setattr(
            "agromart.cli._login.build_auth_service", lambda config, deliver=None: service
        )

    def test_paste_and_submit(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        result = runner.invoke(
            cli, ["login", "9876543210", "--agree"], env=env, input="12345\n\n"
        )
        assert result.exit_code == 0, result.output
        assert "Signed in as" in result.output
        assert service.dispatch_calls == ["+919876543210"]
        assert service.verify_calls == [("+919876543210", "12345")]
        assert service.closed

    def test_digit_by_digit_with_correction(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        service.verify_outcomes.append(VerifyOutcome.failure(VerifyReason.WRONG_CODE))
        keys = "1\n2\n3\n4\n9\n\n-\n5\n\n"
        result = runner.invoke(cli, ["login", "9876543210", "--agree"], env=env, input=keys)
        assert result.exit_code == 0, result.output
        assert "Invalid OTP" in result.output
        assert [c for _, c in service.verify_calls] == ["12349", "12345"]

    def test_resend(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        result = runner.invoke(
            cli, ["login", "9876543210", "--agree"], env=env, input="r\n12345\n\n"
        )
        assert result.exit_code == 0, result.output
        assert "OTP resent." in result.output
        assert len(service.dispatch_calls) == 2

    def test_incomplete_prompt(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        result = runner.invoke(
            cli, ["login", "9876543210", "--agree"], env=env, input="12\n\nq\n"
        )
        assert result.exit_code == ExitCode.ERROR
        assert "Please enter complete OTP" in result.output
        assert "Back to login." in result.output
        assert service.verify_calls == []

    def test_eof_goes_back(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["login", "9876543210", "--agree"], env=env, input="")
        assert result.exit_code == ExitCode.ERROR

    def test_terms_required(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        result = runner.invoke(cli, ["login", "9876543210"], env=env)
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Please agree to terms and conditions" in result.output
        assert service.dispatch_calls == []
        assert service.closed

    def test_dispatch_refused(
        self, runner: CliRunner, env: dict[str, str], service: FakeAuthService
    ) -> None:
        service.dispatch_outcomes.append(DispatchOutcome.failure(DispatchReason.RATE_LIMITED))
        result = runner.invoke(cli, ["login", "9876543210", "--agree"], env=env)
        assert result.exit_code == ExitCode.NETWORK_ERROR
        assert "Could not send OTP" in result.output
