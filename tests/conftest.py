"""Pytest configuration for status panel tests."""

from __future__ import annotations

import pytest

from config import PanelConfig
from events import EventBus
from tests.helpers import ManualTicker, make_config

_PANEL_ENV_VARS = (
    "STATUS_PANEL_API_URL",
    "STATUS_PANEL_WS_URL",
    "STATUS_PANEL_ENV",
    "STATUS_PANEL_ENDPOINT",
    "STATUS_PANEL_POLL_INTERVAL",
    "STATUS_PANEL_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of the tests."""
    for name in _PANEL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> PanelConfig:
    return make_config()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()
