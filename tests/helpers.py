"""Shared test helpers for status panel tests."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from config import PanelConfig
from models import StatusSnapshot


async def settle(rounds: int = 10) -> None:
    """Yield to the event loop enough times for spawned tasks to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualTicker:
    """Stand-in for ``asyncio.sleep`` that returns only when the test ticks."""

    def __init__(self) -> None:
        self._tokens: asyncio.Queue[None] = asyncio.Queue()
        self.requested: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.requested.append(seconds)
        await self._tokens.get()

    async def tick(self, count: int = 1) -> None:
        """Let *count* intervals elapse, settling the loop after each."""
        for _ in range(count):
            self._tokens.put_nowait(None)
            await settle()


def make_status_payload(**overrides: Any) -> dict[str, Any]:
    """Return a JSON-shaped status payload as the backend sends it."""
    payload: dict[str, Any] = {
        "status": "healthy",
        "uptime": 3661,
        "modules": {
            "session": {"status": "active"},
            "document_processor": {"status": "running"},
            "retrieval": {"status": "healthy"},
            "generation": {"status": "warning"},
        },
        "memory_usage": {
            "rss": 104857600,
            "heap_used": 52428800,
            "heap_total": 78643200,
            "external": 1048576,
        },
        "performance": {
            "avg_response_time": 123.4,
            "total_requests": 12345,
            "active_sessions": 7,
        },
    }
    payload.update(overrides)
    return payload


def make_snapshot(**overrides: Any) -> StatusSnapshot:
    return StatusSnapshot.from_payload(make_status_payload(**overrides))


def make_config(**overrides: Any) -> PanelConfig:
    """Return a PanelConfig with test defaults."""
    defaults: dict[str, Any] = {
        "api_base_url": "http://status.test",
        "ws_url": "ws://status.test",
        "environment": "development",
        "poll_interval": 30.0,
        "request_timeout": 5.0,
    }
    defaults.update(overrides)
    return PanelConfig(**defaults)


def make_fetcher(*results: Any, endpoint: str = "/api/admin/status") -> MagicMock:
    """Return a fake fetcher whose ``fetch`` yields/raises *results* in order."""
    fetcher = MagicMock()
    fetcher.endpoint = endpoint
    fetcher.fetch = AsyncMock(side_effect=list(results))
    return fetcher


class GatedFetcher:
    """Fetcher whose calls block until the test releases them one by one."""

    def __init__(self, endpoint: str = "/api/admin/status") -> None:
        self.endpoint = endpoint
        self.pending: list[asyncio.Future[StatusSnapshot]] = []

    async def fetch(self) -> StatusSnapshot:
        future: asyncio.Future[StatusSnapshot] = (
            asyncio.get_running_loop().create_future()
        )
        self.pending.append(future)
        return await future

    def resolve(self, index: int, snapshot: StatusSnapshot) -> None:
        self.pending[index].set_result(snapshot)

    def fail(self, index: int, error: BaseException) -> None:
        self.pending[index].set_exception(error)
