from __future__ import annotations

from urllib.parse import parse_qsl

import httpx
import pytest

from mobileauth.config import const
from mobileauth.services.guard.errors import GuardHttpError
from mobileauth.services.guard.settings import GuardSettings
from mobileauth.services.guard.transport import GuardHttpClient


def _client(handler) -> GuardHttpClient:
    return GuardHttpClient(settings=GuardSettings(), transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_post_sends_form_cookies_and_user_agent():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["ua"] = request.headers["User-Agent"]
        seen["cookie"] = request.headers["Cookie"]
        seen["type"] = request.headers["Content-Type"]
        seen["form"] = parse_qsl(request.content.decode())
        return httpx.Response(200, text='{"response": {}}')

    body = await _client(handler).post(
        "https://api.example/x",
        {"steamLoginSecure": "1||tok", "sessionid": "ABC"},
        [("cid[]", "1"), ("cid[]", "2")],
    )

    assert body == '{"response": {}}'
    assert seen["method"] == "POST"
    assert seen["ua"] == const.MOBILE_USER_AGENT
    assert seen["cookie"] == "steamLoginSecure=1||tok; sessionid=ABC"
    assert seen["type"] == "application/x-www-form-urlencoded"
    assert seen["form"] == [("cid[]", "1"), ("cid[]", "2")]


@pytest.mark.anyio
async def test_get_keeps_percent_encoded_query():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.query
        seen["cookie"] = request.headers.get("Cookie")
        return httpx.Response(200, text="{}")

    await _client(handler).get("https://c.example/mobileconf/getlist?k=ab%2Bcd%3D&tag=conf", None)

    assert seen["query"] == b"k=ab%2Bcd%3D&tag=conf"
    assert seen["cookie"] is None


@pytest.mark.anyio
async def test_http_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="Too Many Requests")

    with pytest.raises(GuardHttpError) as excinfo:
        await _client(handler).get("https://c.example/", None)
    assert excinfo.value.status_code == 429


@pytest.mark.anyio
async def test_network_error_raises_with_status_zero():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GuardHttpError) as excinfo:
        await _client(handler).post("https://api.example/x", None, None)
    assert excinfo.value.status_code == 0


def test_settings_from_env(tmp_path):
    settings = GuardSettings.from_env(
        {
            "MOBILEAUTH_API_BASE": "http://localhost:9000/",
            "MOBILEAUTH_COMMUNITY_BASE": "http://localhost:9001",
            "MOBILEAUTH_TIMEOUT": "3.5",
            "MOBILEAUTH_HOME": str(tmp_path),
        }
    )
    assert settings.api_url("/x") == "http://localhost:9000/x"
    assert settings.community_url("/y") == "http://localhost:9001/y"
    assert settings.timeout == 3.5
    assert settings.home == tmp_path
