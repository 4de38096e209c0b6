"""Identifier helpers for the virtual authenticator device and its web session."""
from __future__ import annotations

import secrets
import uuid
from typing import NewType

__all__ = [
    "DeviceId",
    "SessionId",
    "generate_device_id",
    "generate_session_id",
]

DeviceId = NewType("DeviceId", str)
SessionId = NewType("SessionId", str)

_DEVICE_PREFIX = "android:"
_SESSION_ID_DIGITS = 32


def generate_device_id() -> DeviceId:
    return DeviceId(f"{_DEVICE_PREFIX}{uuid.uuid4()}")


def generate_session_id(digits: int = _SESSION_ID_DIGITS) -> SessionId:
    """Return ``digits`` random upper-case hex characters."""
    value = secrets.token_hex((digits + 1) // 2).upper()
    return SessionId(value[:digits])
