"""Runtime settings for the authenticator services."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os

from mobileauth.config import const

__all__ = ["GuardSettings"]


def _default_home() -> Path:
    return Path.home() / const.STATE_DIRNAME


@dataclass(slots=True)
class GuardSettings:
    api_base: str = const.API_BASE
    community_base: str = const.COMMUNITY_BASE
    timeout: float = const.HTTP_TIMEOUT
    user_agent: str = const.MOBILE_USER_AGENT
    home: Path = field(default_factory=_default_home)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "GuardSettings":
        env = os.environ if environ is None else environ
        settings = cls()
        settings.api_base = (env.get("MOBILEAUTH_API_BASE") or settings.api_base).rstrip("/")
        settings.community_base = (env.get("MOBILEAUTH_COMMUNITY_BASE") or settings.community_base).rstrip("/")
        timeout = env.get("MOBILEAUTH_TIMEOUT")
        if timeout:
            try:
                settings.timeout = float(timeout)
            except ValueError:
                pass
        home = env.get("MOBILEAUTH_HOME")
        if home:
            settings.home = Path(home).expanduser()
        return settings

    def api_url(self, path: str) -> str:
        return f"{self.api_base.rstrip('/')}{path}"

    def community_url(self, path: str) -> str:
        return f"{self.community_base.rstrip('/')}{path}"
