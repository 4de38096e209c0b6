"""HTTP transport used by the authenticator services."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence, Tuple, Union

import httpx

from .errors import GuardHttpError
from .settings import GuardSettings

__all__ = ["FormFields", "GuardTransport", "GuardHttpClient"]

FormFields = Union[Mapping[str, str], Sequence[Tuple[str, str]]]


class GuardTransport(Protocol):
    """Narrow contract: raw text bodies in, no parsing, no retries."""

    async def get(self, url: str, cookies: Optional[Mapping[str, str]]) -> str: ...

    async def post(self, url: str, cookies: Optional[Mapping[str, str]], form: Optional[FormFields]) -> str: ...


@dataclass(slots=True)
class GuardHttpClient:
    """httpx-backed transport presenting itself as the mobile app."""

    settings: GuardSettings = field(default_factory=GuardSettings)
    transport: Optional[httpx.AsyncBaseTransport] = None
    default_headers: dict[str, str] = field(default_factory=dict)

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.settings.user_agent}
        headers.update({str(k): str(v) for k, v in self.default_headers.items()})
        return headers

    async def get(self, url: str, cookies: Optional[Mapping[str, str]] = None) -> str:
        return await self._request("GET", url, cookies=cookies)

    async def post(
        self,
        url: str,
        cookies: Optional[Mapping[str, str]] = None,
        form: Optional[FormFields] = None,
    ) -> str:
        return await self._request("POST", url, cookies=cookies, data=list(_items(form)))

    async def _request(
        self,
        method: str,
        url: str,
        *,
        cookies: Optional[Mapping[str, str]] = None,
        data: Optional[list[tuple[str, str]]] = None,
    ) -> str:
        request_headers = self._headers()
        if cookies:
            # sent as a raw header; httpx's cookie jar would re-quote the "||" separator
            request_headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in cookies.items())
        content: Optional[str] = None
        if data is not None:
            content = str(httpx.QueryParams(data))
            request_headers["Content-Type"] = "application/x-www-form-urlencoded"
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self.transport) as client:
                response = await client.request(method, url, content=content, headers=request_headers)
        except httpx.RequestError as exc:
            raise GuardHttpError(f"{method} {url} failed: {exc}", status_code=0) from exc

        if response.status_code >= 400:
            raise GuardHttpError(
                response.text or f"HTTP {response.status_code}",
                status_code=response.status_code,
                payload=response.text,
            )
        return response.text


def _items(form: Optional[FormFields]):
    if form is None:
        return
    pairs = form.items() if isinstance(form, Mapping) else form
    for key, value in pairs:
        yield str(key), str(value)
