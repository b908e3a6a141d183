# RETS Client
# File: config.py
# Version: v3

"""Configuration loading for the RETS client."""

from __future__ import annotations

from dataclasses import dataclass
import os

from .models import Credentials

DEFAULT_USER_AGENT = "RETS-Client/1.0"
DEFAULT_RETS_VERSION = "RETS/1.7.2"
DEFAULT_UPDATE_DELIMITER = "|"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env_flag(name: str, default: bool) -> bool:
    """Read a RETS_* on/off setting; unrecognized values keep ``default``."""
    raw = (os.getenv(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _env_seconds(name: str, default: int, lower: int, upper: int) -> int:
    """Read a whole number of seconds, clamped to ``[lower, upper]``."""
    raw = (os.getenv(name) or "").strip()
    try:
        value = int(raw) if raw else default
    except ValueError:
        value = default
    return max(lower, min(upper, value))


@dataclass
class RetsConfig:
    """Connection settings for one RETS server."""

    login_url: str | None
    username: str | None
    password: str | None
    user_agent: str = DEFAULT_USER_AGENT
    user_agent_password: str | None = None
    rets_version: str = DEFAULT_RETS_VERSION

    verify_tls: bool = True
    timeout_seconds: int = 60

    # Separator used to join field=value pairs in Update records.
    update_delimiter: str = DEFAULT_UPDATE_DELIMITER

    @classmethod
    def from_env(cls) -> "RetsConfig":
        """Create configuration from environment variables."""
        return cls(
            login_url=os.getenv("RETS_LOGIN_URL"),
            username=os.getenv("RETS_USERNAME"),
            password=os.getenv("RETS_PASSWORD"),
            user_agent=os.getenv("RETS_USER_AGENT") or DEFAULT_USER_AGENT,
            user_agent_password=os.getenv("RETS_USER_AGENT_PASSWORD") or None,
            rets_version=os.getenv("RETS_VERSION") or DEFAULT_RETS_VERSION,
            verify_tls=_env_flag("RETS_VERIFY_TLS", default=True),
            timeout_seconds=_env_seconds(
                "RETS_TIMEOUT_SECONDS", default=60, lower=1, upper=600
            ),
            update_delimiter=os.getenv("RETS_UPDATE_DELIMITER")
            or DEFAULT_UPDATE_DELIMITER,
        )

    def credentials(self) -> Credentials:
        return Credentials(
            username=self.username or "",
            password=self.password or "",
            user_agent=self.user_agent,
            rets_version=self.rets_version,
            user_agent_password=self.user_agent_password,
        )
