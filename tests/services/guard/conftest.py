from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Any

import pytest

from mobileauth.services.guard import AuthenticatorIdentity, FixedClock, SessionData
from mobileauth.services.guard.errors import GuardHttpError

SHARED_SECRET = "zvIayp3JPvtvX/QGHqsqKBk/44s="
IDENTITY_SECRET = "W6Wk4vGvGm4oTNcCp1VRtZqbkeM="
STEAM_ID = 76561197960287930


class FakeTransport:
    """Scripted transport: responses are queued per endpoint fragment and every call is recorded."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses: dict[str, deque] = defaultdict(deque)

    def queue(self, fragment: str, *bodies: Any) -> None:
        for body in bodies:
            if isinstance(body, (dict, list)):
                body = json.dumps(body)
            self._responses[fragment].append(body)

    def count(self, fragment: str) -> int:
        return sum(1 for call in self.calls if fragment in call["url"])

    def forms(self, fragment: str) -> list[dict[str, str]]:
        return [dict(call["form"] or {}) for call in self.calls if fragment in call["url"]]

    def _answer(self, url: str) -> str:
        for fragment, bodies in self._responses.items():
            if fragment in url and bodies:
                body = bodies[0] if len(bodies) == 1 else bodies.popleft()
                if isinstance(body, Exception):
                    raise body
                return body
        raise AssertionError(f"unexpected request to {url}")

    async def get(self, url, cookies):
        self.calls.append({"method": "GET", "url": url, "cookies": cookies, "form": None})
        return self._answer(url)

    async def post(self, url, cookies, form):
        if form is not None and not isinstance(form, dict):
            pairs = list(form)
        else:
            pairs = list((form or {}).items())
        self.calls.append({"method": "POST", "url": url, "cookies": cookies, "form": dict(pairs), "pairs": pairs})
        return self._answer(url)


def transport_error(message: str = "boom") -> GuardHttpError:
    return GuardHttpError(message, status_code=0)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(0, clock=lambda: 1_700_000_000)


@pytest.fixture()
def session() -> SessionData:
    return SessionData(steam_id=STEAM_ID, access_token="access-token", refresh_token="refresh-token")


@pytest.fixture()
def identity(session: SessionData) -> AuthenticatorIdentity:
    return AuthenticatorIdentity(
        session=session,
        shared_secret=SHARED_SECRET,
        identity_secret=IDENTITY_SECRET,
        revocation_code="R12345",
        account_name="tester",
        device_id="android:00000000-0000-0000-0000-000000000001",
    )
