"""Unit tests for agromart.core.config."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from agromart.core.config import (
    AgromartConfig,
    AuthConfig,
    LoggingConfig,
    LoginConfig,
    OtpConfig,
    ResendMode,
    config_file_path,
    config_to_dict,
    default_config,
    load_config,
    save_config,
)
from agromart.core.exceptions import ConfigError, ConfigNotFoundError

ENV_VARS = (
    "AGROMART_CONFIG",
    "AGROMART_AUTH_ENDPOINT",
    "AGROMART_AUTH_API_TOKEN",
    "AGROMART_OTP_TTL_SECONDS",
    "AGROMART_OTP_RESEND_MODE",
    "AGROMART_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_defaults(self) -> None:
        config = AgromartConfig()
        assert config.otp.code_length == 5
        assert config.otp.ttl_seconds == 300
        assert config.otp.resend_mode == ResendMode.OPTIMISTIC
        assert config.otp.resend_cooldown_seconds == 0
        assert config.login.country_code == "+91"
        assert config.login.phone_digits == 10
        assert config.sandbox
        assert config.config_path is None

    def test_endpoint_disables_sandbox(self) -> None:
        config = AgromartConfig(auth=AuthConfig(endpoint="https://auth.example.com/"))
        assert config.auth.endpoint == "https://auth.example.com"
        assert not config.sandbox


class TestValidation:
    @pytest.mark.parametrize("length", [3, 9, 0])
    def test_code_length_range(self, length: int) -> None:
        with pytest.raises(ValidationError):
            OtpConfig(code_length=length)

    @pytest.mark.parametrize("ttl", [0, -1, 3601])
    def test_ttl_range(self, ttl: int) -> None:
        with pytest.raises(ValidationError):
            OtpConfig(ttl_seconds=ttl)

    def test_unknown_resend_mode(self) -> None:
        with pytest.raises(ValidationError):
            OtpConfig(resend_mode="eventually")

    def test_negative_cooldown(self) -> None:
        with pytest.raises(ValidationError):
            OtpConfig(resend_cooldown_seconds=-5)

    def test_endpoint_scheme(self) -> None:
        with pytest.raises(ValidationError):
            AuthConfig(endpoint="ftp://auth.example.com")

    @pytest.mark.parametrize("cc", ["91", "+", "+12345", "+9a"])
    def test_country_code(self, cc: str) -> None:
        with pytest.raises(ValidationError):
            LoginConfig(country_code=cc)

    def test_log_level_normalised(self) -> None:
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")

    def test_log_format(self) -> None:
        assert LoggingConfig(format="JSON").format == "json"
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


class TestLoad:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_load_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "config.toml",
            '[otp]\ncode_length = 6\nresend_mode = "confirmed"\n\n'
            '[auth]\nendpoint = "https://auth.example.com"\napi_token = "s3cret"\n',
        )
        config = load_config(path)
        assert config.otp.code_length == 6
        assert config.otp.resend_mode == ResendMode.CONFIRMED
        assert config.auth.api_token is not None
        assert config.auth.api_token.get_secret_value() == "s3cret"
        assert config.config_path == path

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", "[otp\ncode_length = ")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "config.toml", "[otp]\ncode_length = 2\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_env_var_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(tmp_path / "custom.toml", "[otp]\nttl_seconds = 60\n")
        monkeypatch.setenv("AGROMART_CONFIG", str(path))
        assert config_file_path() == path
        assert load_config().otp.ttl_seconds == 60


class TestEnvOverrides:
    def test_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(
            tmp_path / "config.toml",
            '[otp]\nttl_seconds = 60\n\n[auth]\nendpoint = "https://a.example.com"\n',
        )
        monkeypatch.setenv("AGROMART_OTP_TTL_SECONDS", "120")
        monkeypatch.setenv("AGROMART_AUTH_ENDPOINT", "https://b.example.com")
        monkeypatch.setenv("AGROMART_AUTH_API_TOKEN", "tok")
        monkeypatch.setenv("AGROMART_OTP_RESEND_MODE", "confirmed")
        monkeypatch.setenv("AGROMART_LOG_LEVEL", "warning")

        config = load_config(path)
        assert config.otp.ttl_seconds == 120
        assert config.otp.resend_mode == ResendMode.CONFIRMED
        assert config.auth.endpoint == "https://b.example.com"
        assert config.auth.api_token is not None
        assert config.auth.api_token.get_secret_value() == "tok"
        assert config.logging.level == "WARNING"

    def test_defaults_still_see_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGROMART_AUTH_ENDPOINT", "https://auth.example.com")
        config = default_config()
        assert not config.sandbox
        assert config.config_path is None

    def test_bad_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGROMART_OTP_TTL_SECONDS", "forever")
        with pytest.raises(ConfigError):
            default_config()


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------


class TestSave:
    def test_round_trip_keeps_token(self, tmp_path: Path) -> None:
        config = AgromartConfig(
            otp=OtpConfig(code_length=6),
            auth=AuthConfig(endpoint="https://auth.example.com", api_token="s3cret"),
        )
        path = save_config(config_to_dict(config), tmp_path / "sub" / "config.toml")

        loaded = load_config(path)
        assert loaded.otp.code_length == 6
        assert loaded.auth.api_token is not None
        assert loaded.auth.api_token.get_secret_value() == "s3cret"

    def test_permissions(self, tmp_path: Path) -> None:
        path = save_config(config_to_dict(AgromartConfig()), tmp_path / "config.toml")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert not path.with_suffix(".tmp").exists()

    def test_defaults_omit_token(self) -> None:
        data = config_to_dict(AgromartConfig())
        assert "api_token" not in data["auth"]
