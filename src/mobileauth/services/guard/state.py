"""Persistence helpers for linked authenticator files."""
from __future__ import annotations

from pathlib import Path
import json
import os
import re

from mobileauth.config import const

from .errors import GuardError
from .models import AuthenticatorIdentity

__all__ = ["identity_path", "save_identity", "load_identity", "list_identities"]

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def identity_path(base_dir: Path, account_name: str) -> Path:
    name = _UNSAFE.sub("_", account_name.strip()) or "account"
    return base_dir / f"{name}{const.STATE_SUFFIX}"


def save_identity(base_dir: Path, identity: AuthenticatorIdentity) -> Path:
    if not identity.account_name:
        raise GuardError("identity has no account name")
    path = identity_path(base_dir, identity.account_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = identity.as_json()
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except PermissionError:
        pass
    return path


def load_identity(path: Path) -> AuthenticatorIdentity:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise GuardError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise GuardError(f"{path} does not contain an authenticator object")
    return AuthenticatorIdentity.from_mapping(data)


def list_identities(base_dir: Path) -> list[Path]:
    if not base_dir.exists():
        return []
    return sorted(base_dir.glob(f"*{const.STATE_SUFFIX}"))
