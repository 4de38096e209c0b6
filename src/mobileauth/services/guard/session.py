"""Access-token rotation for an externally established session."""
from __future__ import annotations

import logging

from mobileauth.config import const

from .errors import GuardHttpError, SessionError
from .models import SessionData
from .schemas import AccessTokenResponse, parse_body
from .settings import GuardSettings
from .transport import GuardTransport

__all__ = ["refresh_access_token"]

_log = logging.getLogger("mobileauth.guard.session")


async def refresh_access_token(
    session: SessionData,
    transport: GuardTransport,
    settings: GuardSettings | None = None,
    *,
    now: float | None = None,
) -> str:
    """Swap the refresh token for a new access token and store it on ``session``."""
    if not session.refresh_token:
        raise SessionError("refresh token is empty")
    if session.is_refresh_token_expired(now):
        raise SessionError("refresh token is expired")

    settings = settings or GuardSettings()
    form = {"refresh_token": session.refresh_token, "steamid": str(session.steam_id)}
    try:
        body = await transport.post(settings.api_url(const.ACCESS_TOKEN_PATH), None, form)
    except GuardHttpError as exc:
        raise SessionError(f"failed to refresh token: {exc}") from exc

    parsed = parse_body(AccessTokenResponse, body)
    if parsed is None or parsed.response is None or not parsed.response.access_token:
        raise SessionError("failed to refresh token: no access token in response")
    session.access_token = parsed.response.access_token
    _log.info("access token refreshed steam_id=%s", session.steam_id)
    return session.access_token
