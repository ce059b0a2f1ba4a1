"""Agromart configuration: Pydantic model, load, and save."""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from agromart.core.constants import (
    AGROMART_DIR_NAME,
    CONFIG_FILENAME,
    DEFAULT_AUTH_TIMEOUT_SECONDS,
    DEFAULT_CODE_LENGTH,
    DEFAULT_COUNTRY_CODE,
    DEFAULT_OTP_TTL_SECONDS,
    DEFAULT_PHONE_DIGITS,
    DEFAULT_RESEND_COOLDOWN_SECONDS,
    MAX_CODE_LENGTH,
    MAX_OTP_TTL_SECONDS,
    MIN_CODE_LENGTH,
)
from agromart.core.exceptions import ConfigError, ConfigNotFoundError


def agromart_dir() -> Path:
    """Return the Agromart config directory (~/.agromart), creating it if needed."""
    d = Path.home() / AGROMART_DIR_NAME
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


class ResendMode(StrEnum):
    """When a resend resets the code buffer and the countdown."""

    OPTIMISTIC = "optimistic"  # on request, before the dispatch completes
    CONFIRMED = "confirmed"  # only once the dispatch service accepts


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class OtpConfig(BaseModel):
    code_length: int = DEFAULT_CODE_LENGTH
    ttl_seconds: int = DEFAULT_OTP_TTL_SECONDS
    resend_mode: ResendMode = ResendMode.OPTIMISTIC
    resend_cooldown_seconds: int = Field(default=DEFAULT_RESEND_COOLDOWN_SECONDS, ge=0)

    @field_validator("code_length")
    @classmethod
    def validate_code_length(cls, v: int) -> int:
        if not (MIN_CODE_LENGTH <= v <= MAX_CODE_LENGTH):
            raise ValueError(
                f"code_length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}"
            )
        return v

    @field_validator("ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if not (1 <= v <= MAX_OTP_TTL_SECONDS):
            raise ValueError(f"ttl_seconds must be between 1 and {MAX_OTP_TTL_SECONDS}")
        return v


class AuthConfig(BaseModel):
    endpoint: str = ""  # empty → in-memory sandbox service
    api_token: SecretStr | None = None
    timeout_seconds: float = Field(default=DEFAULT_AUTH_TIMEOUT_SECONDS, gt=0)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("endpoint must start with http:// or https://")
        return v


class LoginConfig(BaseModel):
    country_code: str = DEFAULT_COUNTRY_CODE
    phone_digits: int = Field(default=DEFAULT_PHONE_DIGITS, ge=4, le=15)

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        import re

        if not re.fullmatch(r"\+\d{1,4}", v):
            raise ValueError("country_code must look like +<1-4 digits>, e.g. +91")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in {"text", "json"}:
            raise ValueError("Log format must be 'text' or 'json'")
        return v.lower()


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class AgromartConfig(BaseModel):
    """Root Agromart configuration model."""

    otp: OtpConfig = Field(default_factory=OtpConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    login: LoginConfig = Field(default_factory=LoginConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Computed paths (not stored in config file)
    _config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    @property
    def sandbox(self) -> bool:
        """True when no auth endpoint is configured."""
        return not self.auth.endpoint


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def config_file_path() -> Path:
    if env_path := os.environ.get("AGROMART_CONFIG"):
        return Path(env_path)
    return agromart_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> AgromartConfig:
    """
    Load AgromartConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (AGROMART_*)
      2. Config file (~/.agromart/config.toml)
    """
    import tomllib

    cfg_path = path or config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(
            f"Agromart is not configured. Run 'agromart config init' first.\n"
            f"(Config file not found: {cfg_path})"
        )

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    config = _validate(data, source=str(cfg_path))
    config._config_path = cfg_path
    return config


def default_config() -> AgromartConfig:
    """Return the built-in defaults, still overlaid with AGROMART_* variables."""
    return _validate({}, source="defaults")


def _validate(data: dict[str, Any], source: str) -> AgromartConfig:
    _apply_env_overrides(data)
    try:
        return AgromartConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {source}: {exc}") from exc


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay AGROMART_* environment variables onto the parsed TOML data."""
    if endpoint := os.environ.get("AGROMART_AUTH_ENDPOINT"):
        data.setdefault("auth", {})["endpoint"] = endpoint
    if token := os.environ.get("AGROMART_AUTH_API_TOKEN"):
        data.setdefault("auth", {})["api_token"] = token
    if ttl := os.environ.get("AGROMART_OTP_TTL_SECONDS"):
        data.setdefault("otp", {})["ttl_seconds"] = ttl
    if mode := os.environ.get("AGROMART_OTP_RESEND_MODE"):
        data.setdefault("otp", {})["resend_mode"] = mode
    if level := os.environ.get("AGROMART_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level


def config_to_dict(config: AgromartConfig) -> dict[str, Any]:
    """Dump a config to plain TOML-serialisable data (secrets included)."""
    data = config.model_dump(mode="json", exclude_none=True)
    if config.auth.api_token is not None:
        data["auth"]["api_token"] = config.auth.api_token.get_secret_value()
    return data


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import tomli_w

    cfg_path = path or config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    # Secure permissions
    cfg_path.chmod(0o600)
    return cfg_path
