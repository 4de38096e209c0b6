"""Dataclasses for the session, the linked authenticator and pending confirmations."""
from __future__ import annotations

import base64
import binascii
import json
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

from mobileauth.config import const

from .enums import ConfirmationType
from .errors import GuardError
from .ids import generate_session_id
from .schemas import AuthenticatorPayload, ConfirmationPayload

__all__ = [
    "SessionData",
    "AuthenticatorIdentity",
    "Confirmation",
]


def _token_expiry(token: str) -> int:
    parts = token.split(".")
    if len(parts) < 2:
        raise GuardError("token is not a JWT")
    segment = parts[1].replace("-", "+").replace("_", "/")
    segment += "=" * (-len(segment) % 4)
    try:
        claims = json.loads(base64.b64decode(segment))
    except (binascii.Error, ValueError) as exc:
        raise GuardError("failed to parse JWT payload") from exc
    if not isinstance(claims, dict):
        raise GuardError("failed to parse JWT payload")
    return int(claims.get("exp") or 0)


@dataclass(slots=True)
class SessionData:
    steam_id: int
    access_token: str = ""
    refresh_token: str = ""
    session_id: str | None = None

    def ensure_session_id(self) -> str:
        if not self.session_id:
            self.session_id = generate_session_id()
        return self.session_id

    @property
    def login_secure(self) -> str:
        return f"{self.steam_id}||{self.access_token}"

    def cookies(self) -> dict[str, str]:
        return {
            "steamLoginSecure": self.login_secure,
            "sessionid": self.ensure_session_id(),
            "mobileClient": const.MOBILE_CLIENT,
            "mobileClientVersion": const.MOBILE_CLIENT_VERSION,
        }

    def is_access_token_expired(self, now: float | None = None) -> bool:
        if not self.access_token:
            return True
        return (time.time() if now is None else now) > _token_expiry(self.access_token)

    def is_refresh_token_expired(self, now: float | None = None) -> bool:
        if not self.refresh_token:
            return True
        return (time.time() if now is None else now) > _token_expiry(self.refresh_token)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SessionData":
        return cls(
            steam_id=int(data.get("SteamID") or data.get("steam_id") or 0),
            access_token=str(data.get("AccessToken") or data.get("access_token") or ""),
            refresh_token=str(data.get("RefreshToken") or data.get("refresh_token") or ""),
            session_id=(data.get("SessionID") or data.get("session_id") or None),
        )

    def as_json(self) -> dict[str, Any]:
        return {
            "SteamID": self.steam_id,
            "AccessToken": self.access_token,
            "RefreshToken": self.refresh_token,
            "SessionID": self.session_id,
        }


@dataclass(slots=True)
class AuthenticatorIdentity:
    """Secrets and metadata of one linked authenticator."""

    session: SessionData
    shared_secret: str = ""
    identity_secret: str = ""
    serial_number: str = ""
    revocation_code: str = ""
    uri: str = ""
    server_time: int = 0
    account_name: str = ""
    token_gid: str = ""
    secret_1: str = ""
    device_id: str = ""
    fully_enrolled: bool = False

    @property
    def steam_id(self) -> int:
        return self.session.steam_id

    @classmethod
    def from_payload(
        cls, payload: AuthenticatorPayload, *, device_id: str, session: SessionData
    ) -> "AuthenticatorIdentity":
        return cls(
            session=session,
            shared_secret=payload.shared_secret,
            identity_secret=payload.identity_secret,
            serial_number=payload.serial_number,
            revocation_code=payload.revocation_code,
            uri=payload.uri,
            server_time=payload.server_time or 0,
            account_name=payload.account_name,
            token_gid=payload.token_gid,
            secret_1=payload.secret_1,
            device_id=device_id,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AuthenticatorIdentity":
        session_data = data.get("Session") or {}
        if not isinstance(session_data, Mapping):
            raise GuardError("identity file has a malformed Session block")
        return cls(
            session=SessionData.from_mapping(session_data),
            shared_secret=str(data.get("shared_secret", "")),
            identity_secret=str(data.get("identity_secret", "")),
            serial_number=str(data.get("serial_number", "")),
            revocation_code=str(data.get("revocation_code", "")),
            uri=str(data.get("uri", "")),
            server_time=int(data.get("server_time") or 0),
            account_name=str(data.get("account_name", "")),
            token_gid=str(data.get("token_gid", "")),
            secret_1=str(data.get("secret_1", "")),
            device_id=str(data.get("device_id", "")),
            fully_enrolled=bool(data.get("fully_enrolled", False)),
        )

    def as_json(self) -> dict[str, Any]:
        return {
            "shared_secret": self.shared_secret,
            "serial_number": self.serial_number,
            "revocation_code": self.revocation_code,
            "uri": self.uri,
            "server_time": self.server_time,
            "account_name": self.account_name,
            "token_gid": self.token_gid,
            "identity_secret": self.identity_secret,
            "secret_1": self.secret_1,
            "device_id": self.device_id,
            "fully_enrolled": self.fully_enrolled,
            "Session": self.session.as_json(),
        }


@dataclass(frozen=True, slots=True)
class Confirmation:
    id: str
    key: str
    creator_id: str = "0"
    type: ConfirmationType = ConfirmationType.UNKNOWN
    type_name: str = ""
    headline: str = ""
    summary: tuple[str, ...] = field(default_factory=tuple)
    accept: str = ""
    cancel: str = ""
    icon: str | None = None
    creation_time: int | None = None

    @classmethod
    def from_payload(cls, payload: ConfirmationPayload) -> "Confirmation":
        return cls(
            id=payload.id,
            key=payload.nonce,
            creator_id=payload.creator_id,
            type=ConfirmationType.parse(payload.type),
            type_name=payload.type_name,
            headline=payload.headline,
            summary=tuple(payload.summary),
            accept=payload.accept,
            cancel=payload.cancel,
            icon=payload.icon,
            creation_time=payload.creation_time,
        )
