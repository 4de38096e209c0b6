"""Alignment of the local clock with the service's authoritative time."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from mobileauth.config import const

from .errors import GuardHttpError
from .schemas import QueryTimeResponse, parse_body
from .settings import GuardSettings
from .transport import GuardTransport

__all__ = ["TimeAligner", "FixedClock"]

_log = logging.getLogger("mobileauth.guard.time")


class TimeAligner:
    """
    Lazily calibrated clock:
      * the first ``now()`` queries the service once and caches the offset;
      * a failed query leaves the clock unaligned (offset 0) and the next call retries;
      * a calibrated offset is kept until ``realign()`` is called explicitly.
    """

    def __init__(
        self,
        transport: GuardTransport,
        settings: GuardSettings | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        self._settings = settings or GuardSettings()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._offset = 0
        self._aligned = False

    @property
    def aligned(self) -> bool:
        return self._aligned

    @property
    def offset(self) -> int:
        return self._offset

    def local_time(self) -> int:
        return int(self._clock())

    async def now(self) -> int:
        if not self._aligned:
            async with self._lock:
                if not self._aligned:
                    await self._align()
        return self.local_time() + self._offset

    async def realign(self) -> int:
        async with self._lock:
            self._aligned = False
            await self._align()
        return self.local_time() + self._offset

    async def _align(self) -> None:
        requested_at = self.local_time()
        url = f"{self._settings.api_url(const.TIME_QUERY_PATH)}?steamid=0"
        try:
            body = await self._transport.post(url, None, None)
        except GuardHttpError as exc:
            _log.warning("time alignment failed: %s", exc)
            return
        query = parse_body(QueryTimeResponse, body)
        if query is None or query.response is None or query.response.server_time is None:
            _log.warning("time alignment returned no server_time")
            return
        self._offset = int(query.response.server_time) - requested_at
        self._aligned = True
        _log.info("time aligned offset=%ss", self._offset)


class FixedClock:
    """Drop-in for :class:`TimeAligner` with a constant offset and no network."""

    def __init__(self, offset: int = 0, *, clock: Callable[[], float] = time.time) -> None:
        self._offset = int(offset)
        self._clock = clock
        self.calls = 0

    @property
    def aligned(self) -> bool:
        return True

    @property
    def offset(self) -> int:
        return self._offset

    async def now(self) -> int:
        self.calls += 1
        return int(self._clock()) + self._offset

    async def realign(self) -> int:
        return await self.now()
