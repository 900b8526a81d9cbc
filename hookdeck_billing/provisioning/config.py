from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from .resources import MODES, Mode

DEFAULT_HOOKDECK_API_BASE = "https://api.hookdeck.com/2025-07-01"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0


class ConfigError(RuntimeError):
    """Missing or invalid configuration; raised before any network call."""


def _strip_wrapping_quotes(value: str) -> str:
    """Remove a single pair of wrapping quotes if present.

    .env files sometimes carry quoted values, e.g. CHARGEBEE_WEBHOOK_PASSWORD="s3cret".
    """
    s = (value or "").strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1].strip()
    return s


def read_env(name: str, default: str = "") -> str:
    return _strip_wrapping_quotes(os.getenv(name, default) or "")


def require_env(name: str) -> str:
    value = read_env(name)
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _collect(names: List[str]) -> dict:
    values = {n: read_env(n) for n in names}
    missing = [n for n, v in values.items() if not v]
    if len(missing) == 1:
        raise ConfigError(f"Missing required environment variable: {missing[0]}")
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
    return values


def _timeout_from_env() -> float:
    raw = read_env("PROVISIONING_HTTP_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"PROVISIONING_HTTP_TIMEOUT_SECONDS must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError("PROVISIONING_HTTP_TIMEOUT_SECONDS must be positive")
    return value


@dataclass(frozen=True)
class ProvisioningConfig:
    mode: Mode
    hookdeck_api_key: str
    chargebee_site: str
    chargebee_api_key: str
    webhook_username: str
    webhook_password: str
    prod_destination_url: Optional[str] = None
    hookdeck_api_base: str = DEFAULT_HOOKDECK_API_BASE
    chargebee_api_base: Optional[str] = None
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, mode: str) -> "ProvisioningConfig":
        """Read every variable the run needs; all missing names are reported at once."""
        m = (mode or "").strip().lower()
        if m not in MODES:
            raise ConfigError(f'Invalid mode {mode!r}. Must be "dev" or "prod"')

        names = [
            "HOOKDECK_API_KEY",
            "CHARGEBEE_SITE",
            "CHARGEBEE_API_KEY",
            "CHARGEBEE_WEBHOOK_USERNAME",
            "CHARGEBEE_WEBHOOK_PASSWORD",
        ]
        if m == "prod":
            names.append("PROD_DESTINATION_URL")
        values = _collect(names)

        prod_url = values.get("PROD_DESTINATION_URL")
        return cls(
            mode=m,  # type: ignore[arg-type]
            hookdeck_api_key=values["HOOKDECK_API_KEY"],
            chargebee_site=values["CHARGEBEE_SITE"],
            chargebee_api_key=values["CHARGEBEE_API_KEY"],
            webhook_username=values["CHARGEBEE_WEBHOOK_USERNAME"],
            webhook_password=values["CHARGEBEE_WEBHOOK_PASSWORD"],
            prod_destination_url=prod_url.rstrip("/") if prod_url else None,
            hookdeck_api_base=(read_env("HOOKDECK_API_BASE") or DEFAULT_HOOKDECK_API_BASE).rstrip("/"),
            chargebee_api_base=(read_env("CHARGEBEE_API_BASE").rstrip("/") or None),
            http_timeout_seconds=_timeout_from_env(),
        )


@dataclass(frozen=True)
class CleanupConfig:
    hookdeck_api_key: str
    hookdeck_api_base: str = DEFAULT_HOOKDECK_API_BASE
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "CleanupConfig":
        return cls(
            hookdeck_api_key=require_env("HOOKDECK_API_KEY"),
            hookdeck_api_base=(read_env("HOOKDECK_API_BASE") or DEFAULT_HOOKDECK_API_BASE).rstrip("/"),
            http_timeout_seconds=_timeout_from_env(),
        )
