"""Refresh tokens kept in the system keyring instead of the authenticator file."""
from __future__ import annotations

import logging

from .models import SessionData

__all__ = [
    "SERVICE_NAME",
    "KeyringUnavailableError",
    "store_session_token",
    "restore_session_token",
    "forget_session_token",
]

_log = logging.getLogger("mobileauth.guard.token_store")

SERVICE_NAME = "mobileauth/steamcommunity.com"


class KeyringUnavailableError(RuntimeError):
    """Raised when the system keyring backend is not available."""


def _backend():
    try:
        import keyring  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise KeyringUnavailableError("system keyring is unavailable") from exc
    return keyring


def _account(steam_id: int) -> str:
    return f"account:{steam_id}"


def store_session_token(session: SessionData) -> None:
    """Move ``session.refresh_token`` into the keyring."""
    if not session.refresh_token:
        return
    backend = _backend()
    try:
        backend.set_password(SERVICE_NAME, _account(session.steam_id), session.refresh_token)
    except Exception as exc:  # pragma: no cover - backend specific errors
        raise KeyringUnavailableError("failed to write refresh token to keyring") from exc
    _log.info("refresh token stored steam_id=%s", session.steam_id)


def restore_session_token(session: SessionData) -> bool:
    """Fill an empty ``session.refresh_token`` from the keyring; returns whether one was found."""
    if session.refresh_token:
        return True
    backend = _backend()
    try:
        token = backend.get_password(SERVICE_NAME, _account(session.steam_id))
    except Exception as exc:  # pragma: no cover
        raise KeyringUnavailableError("failed to load refresh token from keyring") from exc
    if not token:
        return False
    session.refresh_token = token
    return True


def forget_session_token(steam_id: int) -> None:
    backend = _backend()
    try:
        backend.delete_password(SERVICE_NAME, _account(steam_id))
    except backend.errors.PasswordDeleteError:  # type: ignore[attr-defined]
        return
    except Exception as exc:  # pragma: no cover
        raise KeyringUnavailableError("failed to delete refresh token from keyring") from exc
