"""Login code generation and confirmation request signing.

Both primitives follow RFC 4226 mechanics: an 8-byte big-endian counter fed
through HMAC-SHA1.  Login codes use the 30 second TOTP step and a 26 symbol
alphabet without easily confused glyphs; confirmation signatures hash the raw
timestamp together with an operation tag.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import struct
from typing import Optional
from urllib.parse import quote_plus

from .errors import GuardError

__all__ = [
    "CODE_ALPHABET",
    "CODE_LENGTH",
    "TIME_STEP",
    "MAX_TAG_BYTES",
    "decode_secret",
    "int_to_bytes",
    "dynamic_truncate",
    "generate_code",
    "confirmation_hash",
    "sign_confirmation",
]

_log = logging.getLogger("mobileauth.guard.codes")

CODE_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"
CODE_LENGTH = 5
TIME_STEP = 30
MAX_TAG_BYTES = 32


def decode_secret(secret: str) -> bytes:
    """Base64-decode a secret as stored by the service (``\\/`` escapes tolerated)."""
    cleaned = secret.strip().replace("\\/", "/")
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise GuardError("secret is not valid base64") from exc


def int_to_bytes(value: int) -> bytes:
    return struct.pack(">Q", value & 0xFFFFFFFFFFFFFFFF)


def dynamic_truncate(digest: bytes) -> int:
    offset = digest[19] & 0x0F
    return (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )


def generate_code(shared_secret: Optional[str], timestamp: int) -> str:
    """Return the five character login code for ``timestamp``.

    An absent secret yields ``""``; so does a digest that cannot be
    truncated, which callers treat as "no code" and retry after realigning.
    """
    if not shared_secret:
        return ""
    key = decode_secret(shared_secret)
    digest = hmac.new(key, int_to_bytes(int(timestamp) // TIME_STEP), hashlib.sha1).digest()
    try:
        code_point = dynamic_truncate(digest)
    except IndexError:
        _log.warning("digest truncation failed; no code produced")
        return ""

    chars: list[str] = []
    for _ in range(CODE_LENGTH):
        code_point, idx = divmod(code_point, len(CODE_ALPHABET))
        chars.append(CODE_ALPHABET[idx])
    return "".join(chars)


def confirmation_hash(identity_secret: str, timestamp: int, tag: Optional[str] = None) -> Optional[str]:
    """Return the plain base64 HMAC for a confirmation request, ``None`` on failure."""
    key = decode_secret(identity_secret)
    buffer = int_to_bytes(int(timestamp))
    if tag is not None:
        buffer += tag.encode("utf-8")[:MAX_TAG_BYTES]
    try:
        digest = hmac.new(key, buffer, hashlib.sha1).digest()
    except (TypeError, ValueError):
        _log.warning("confirmation hash failed tag=%s", tag)
        return None
    return base64.b64encode(digest).decode("ascii")


def sign_confirmation(identity_secret: str, timestamp: int, tag: Optional[str] = None) -> Optional[str]:
    """Return the URL-safe (percent-encoded) confirmation signature."""
    encoded = confirmation_hash(identity_secret, timestamp, tag)
    if encoded is None:
        return None
    return quote_plus(encoded)
