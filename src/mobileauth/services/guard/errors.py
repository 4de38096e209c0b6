"""Exception hierarchy for the authenticator services."""
from __future__ import annotations

from typing import Any

__all__ = [
    "GuardError",
    "GuardHttpError",
    "ConfirmationError",
    "AuthenticationRequired",
    "SessionError",
]


class GuardError(RuntimeError):
    """Base error; also raised for precondition violations (missing device id, malformed secrets)."""


class GuardHttpError(GuardError):
    """Raised when the transport fails or the remote side answers with an HTTP error."""

    def __init__(self, message: str, *, status_code: int, payload: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ConfirmationError(GuardError):
    """The confirmation listing was rejected by the remote side."""


class AuthenticationRequired(ConfirmationError):
    """The web session behind the confirmation listing must be re-established."""


class SessionError(GuardError):
    """Access token refresh could not be performed."""
