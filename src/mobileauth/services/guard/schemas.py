"""Typed response envelopes, one per remote endpoint.

Every endpoint wraps its payload either in a ``{"response": {...}}`` envelope
(Web API) or returns a flat object (community endpoints).  Fields the remote
side may omit are optional; numeric fields accept numeric strings because the
service is inconsistent about quoting 64-bit values.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = [
    "QueryTimeResponse",
    "AddAuthenticatorResponse",
    "FinalizeResponse",
    "UserCountryResponse",
    "SetPhoneResponse",
    "EmailConfirmationResponse",
    "RemoveAuthenticatorResponse",
    "AccessTokenResponse",
    "ConfirmationPayload",
    "ConfirmationsResponse",
    "SendConfirmationResponse",
    "parse_body",
]

_log = logging.getLogger("mobileauth.guard.schemas")

M = TypeVar("M", bound=BaseModel)


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class _ServerTime(_Schema):
    server_time: Optional[int] = None


class QueryTimeResponse(_Schema):
    response: Optional[_ServerTime] = None


class AuthenticatorPayload(_Schema):
    status: Optional[int] = None
    shared_secret: str = ""
    serial_number: str = ""
    revocation_code: str = ""
    uri: str = ""
    server_time: Optional[int] = None
    account_name: str = ""
    token_gid: str = ""
    identity_secret: str = ""
    secret_1: str = ""


class AddAuthenticatorResponse(_Schema):
    response: Optional[AuthenticatorPayload] = None


class FinalizePayload(_Schema):
    success: bool = False
    want_more: bool = False
    server_time: Optional[int] = None
    status: Optional[int] = None


class FinalizeResponse(_Schema):
    response: Optional[FinalizePayload] = None


class _Country(_Schema):
    country: str = ""


class UserCountryResponse(_Schema):
    response: Optional[_Country] = None


class _PhoneSet(_Schema):
    confirmation_email_address: Optional[str] = None
    phone_number_formatted: Optional[str] = None


class SetPhoneResponse(_Schema):
    response: Optional[_PhoneSet] = None


class _EmailWait(_Schema):
    awaiting_email_confirmation: bool = False
    seconds_to_wait: int = 0


class EmailConfirmationResponse(_Schema):
    response: Optional[_EmailWait] = None


class _Removal(_Schema):
    success: bool = False
    revocation_attempts_remaining: Optional[int] = None


class RemoveAuthenticatorResponse(_Schema):
    response: Optional[_Removal] = None


class _AccessToken(_Schema):
    access_token: str = ""


class AccessTokenResponse(_Schema):
    response: Optional[_AccessToken] = None


class ConfirmationPayload(_Schema):
    id: str
    nonce: str
    creator_id: str = "0"
    type: Any = 0
    type_name: str = ""
    headline: str = ""
    summary: list[str] = Field(default_factory=list)
    accept: str = ""
    cancel: str = ""
    icon: Optional[str] = None
    creation_time: Optional[int] = None


class ConfirmationsResponse(_Schema):
    success: bool = False
    message: str = ""
    needauth: bool = False
    conf: list[ConfirmationPayload] = Field(default_factory=list)


class SendConfirmationResponse(_Schema):
    success: bool = False


def parse_body(model: Type[M], body: str | bytes | None) -> M | None:
    """Decode ``body`` into ``model``; empty or malformed bodies yield ``None``."""
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        _log.warning("response is not JSON model=%s", model.__name__)
        return None
    if not isinstance(data, dict):
        return None
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        _log.warning("response does not match model=%s errors=%s", model.__name__, exc.error_count())
        return None
