from __future__ import annotations

import json
import os
import sys

import pytest

from mobileauth.services.guard.errors import GuardError
from mobileauth.services.guard.state import identity_path, list_identities, load_identity, save_identity
from mobileauth.services.guard.token_store import (
    SERVICE_NAME,
    forget_session_token,
    restore_session_token,
    store_session_token,
)


def test_identity_file_roundtrip(tmp_path, identity):
    identity.session.session_id = "ABCDEF"
    path = save_identity(tmp_path, identity)

    assert path == tmp_path / "tester.maFile"
    if os.name == "posix":
        assert oct(path.stat().st_mode & 0o777) == "0o600"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["shared_secret"] == identity.shared_secret
    assert data["Session"]["SteamID"] == identity.steam_id

    loaded = load_identity(path)
    assert loaded == identity
    assert list_identities(tmp_path) == [path]


def test_identity_path_sanitizes_account_name(tmp_path):
    assert identity_path(tmp_path, "../evil name").name == ".._evil_name.maFile"


def test_save_requires_account_name(tmp_path, identity):
    identity.account_name = ""
    with pytest.raises(GuardError):
        save_identity(tmp_path, identity)


def test_load_rejects_garbage(tmp_path):
    path = tmp_path / "bad.maFile"
    path.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(GuardError):
        load_identity(path)


class _MemoryKeyring:
    class errors:
        class PasswordDeleteError(Exception):
            pass

    def __init__(self) -> None:
        self.store: dict[tuple[str, str], str] = {}

    def set_password(self, service, user, value):
        self.store[(service, user)] = value

    def get_password(self, service, user):
        return self.store.get((service, user))

    def delete_password(self, service, user):
        if (service, user) not in self.store:
            raise self.errors.PasswordDeleteError(user)
        del self.store[(service, user)]


def test_refresh_token_keyring_roundtrip(monkeypatch, session):
    backend = _MemoryKeyring()
    monkeypatch.setitem(sys.modules, "keyring", backend)

    store_session_token(session)
    assert backend.store[(SERVICE_NAME, f"account:{session.steam_id}")] == "refresh-token"

    session.refresh_token = ""
    assert restore_session_token(session)
    assert session.refresh_token == "refresh-token"

    forget_session_token(session.steam_id)
    forget_session_token(session.steam_id)
    session.refresh_token = ""
    assert not restore_session_token(session)
