"""Status panel: polls the backend status and keeps the display state."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from call_log import CallLogRecorder
from config import PanelConfig, load_config_file
from events import EventBus, EventType, PanelEvent
from exceptions import FetchError
from log import CycleLogAdapter, setup_logging
from models import (
    CallLogView,
    ConnectionInfo,
    DebugView,
    PanelView,
    StatusSnapshot,
)
from polling import PollingScheduler
from presenter import present_snapshot
from status_fetcher import StatusFetcher

logger = logging.getLogger("status_panel.panel")

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class PanelStatus(StrEnum):
    """Mount lifecycle of a :class:`StatusPanel`."""

    IDLE = "idle"
    MOUNTED = "mounted"
    UNMOUNTED = "unmounted"


class StatusPanel:
    """Holds the last snapshot, loading/error flags, debug toggle, and call log.

    ``mount()`` starts a :class:`PollingScheduler` that runs :meth:`refresh`
    immediately and then every ``poll_interval`` seconds; ``unmount()``
    stops it.  Fetches still in flight at unmount finish, but their
    results are dropped.

    Overlapping refreshes are not serialised: whichever fetch completes
    last wins, even if it was issued first.
    """

    def __init__(
        self,
        config: PanelConfig | None = None,
        fetcher: StatusFetcher | None = None,
        call_log: CallLogRecorder | None = None,
        event_bus: EventBus | None = None,
        sleep_fn: Callable[[float], Coroutine[Any, Any, None]] = asyncio.sleep,
    ) -> None:
        self._config = config or PanelConfig()
        self._fetcher = fetcher or StatusFetcher(self._config)
        self._call_log = call_log or CallLogRecorder()
        self._bus = event_bus or EventBus()
        self._sleep_fn = sleep_fn
        self._snapshot: StatusSnapshot | None = None
        self._loading = False
        self._debug_mode = False
        self._error: str | None = None
        self._status = PanelStatus.IDLE
        self._scheduler: PollingScheduler | None = None
        # Bumped on unmount; a refresh that started under an older
        # generation must not touch state.
        self._generation = 0
        self._cycle = 0

    # --- state ---

    @property
    def config(self) -> PanelConfig:
        return self._config

    @property
    def snapshot(self) -> StatusSnapshot | None:
        return self._snapshot

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def debug_mode(self) -> bool:
        return self._debug_mode

    @property
    def call_log(self) -> CallLogRecorder:
        return self._call_log

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def status(self) -> PanelStatus:
        return self._status

    @property
    def scheduler(self) -> PollingScheduler | None:
        return self._scheduler

    @property
    def endpoint(self) -> str:
        return self._fetcher.endpoint

    # --- change stream ---

    def subscribe(
        self, max_queue: int = 100
    ) -> AbstractAsyncContextManager[asyncio.Queue[PanelEvent]]:
        """Stream state changes to a renderer until the block exits.

        Usage::

            async with panel.subscribe() as events:
                while True:
                    await events.get()
                    draw(panel.render_data())
        """
        return self._bus.subscription(max_queue)

    # --- lifecycle ---

    def mount(self) -> PollingScheduler:
        """Start polling.  Must be called from a running event loop."""
        if self._status == PanelStatus.MOUNTED and self._scheduler is not None:
            return self._scheduler
        self._status = PanelStatus.MOUNTED
        self._scheduler = PollingScheduler(
            self.refresh,
            interval=self._config.poll_interval,
            sleep_fn=self._sleep_fn,
            name=self.endpoint,
        )
        self._publish(EventType.PANEL_STATUS, {"status": self._status.value})
        self._scheduler.start()
        return self._scheduler

    async def unmount(self) -> None:
        """Stop polling; late results from in-flight fetches are discarded."""
        if self._status != PanelStatus.MOUNTED:
            return
        self._generation += 1
        self._status = PanelStatus.UNMOUNTED
        if self._scheduler is not None:
            self._scheduler.stop()
        self._publish(EventType.PANEL_STATUS, {"status": self._status.value})
        logger.info("Status panel unmounted")

    async def __aenter__(self) -> StatusPanel:
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()

    # --- poll cycle ---

    async def refresh(self) -> None:
        """Run one poll cycle.  Never raises.

        Used by the scheduler on every tick and for manual refreshes.
        """
        if self._status == PanelStatus.UNMOUNTED:
            logger.debug("Ignoring refresh on unmounted panel")
            return

        generation = self._generation
        self._cycle += 1
        endpoint = self.endpoint
        cycle_log = CycleLogAdapter(
            logger, {"endpoint": endpoint, "cycle": self._cycle}
        )

        self._set_loading(True)
        self._error = None
        cycle_log.info("Loading system stats")

        try:
            snapshot = await self._fetcher.fetch()
        except FetchError as exc:
            if self._is_stale(generation):
                cycle_log.debug("Discarding failure that arrived after unmount")
                return
            cycle_log.error("Failed to load system stats: %s", exc.message)
            self._apply_failure(endpoint, exc.message)
        except Exception as exc:
            if self._is_stale(generation):
                cycle_log.debug("Discarding failure that arrived after unmount")
                return
            cycle_log.exception("Unexpected error while loading system stats")
            self._apply_failure(endpoint, str(exc) or UNKNOWN_ERROR_MESSAGE)
        else:
            if self._is_stale(generation):
                cycle_log.debug("Discarding snapshot that arrived after unmount")
                return
            self._call_log.record_success(endpoint, snapshot)
            self._snapshot = snapshot
            self._error = None
            cycle_log.info("System status loaded", extra={"status": snapshot.status})
            self._publish(
                EventType.STATUS_UPDATE,
                {"status": snapshot.status, "uptime": snapshot.uptime},
            )
        finally:
            if not self._is_stale(generation):
                self._set_loading(False)

    def _apply_failure(self, endpoint: str, message: str) -> None:
        """Log the failure and surface it; the previous snapshot stays."""
        self._call_log.record_failure(endpoint, message)
        self._error = message
        self._publish(EventType.FETCH_ERROR, {"message": message})

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _set_loading(self, loading: bool) -> None:
        if self._loading == loading:
            return
        self._loading = loading
        self._publish(EventType.LOADING_CHANGED, {"loading": loading})

    # --- debug toggle ---

    def set_debug_mode(self, enabled: bool) -> None:
        if self._debug_mode == enabled:
            return
        self._debug_mode = enabled
        self._publish(EventType.DEBUG_TOGGLED, {"debug_mode": enabled})

    def toggle_debug(self) -> bool:
        self.set_debug_mode(not self._debug_mode)
        return self._debug_mode

    # --- rendering ---

    def view(self) -> PanelView:
        """Return the presentation model for the current state."""
        return PanelView(
            loading=self._loading,
            error=self._error,
            debug_mode=self._debug_mode,
            snapshot=(
                present_snapshot(self._snapshot)
                if self._snapshot is not None
                else None
            ),
            debug=self._debug_view() if self._debug_mode else None,
        )

    def render_data(self) -> dict[str, Any]:
        return self.view().model_dump(mode="json")

    def _debug_view(self) -> DebugView:
        api_calls = [
            CallLogView(
                endpoint=endpoint,
                status=entry.status,
                time=_local_time(entry.timestamp),
                error=entry.error,
            )
            for endpoint, entry in self._call_log.entries()
        ]
        return DebugView(
            api_calls=api_calls,
            api_call_count=len(api_calls),
            raw_snapshot=(
                json.dumps(self._snapshot.raw_payload, indent=2, default=str)
                if self._snapshot is not None
                else None
            ),
            connection=ConnectionInfo(
                api_base_url=self._config.api_base_url,
                ws_url=self._config.ws_url,
                environment=self._config.environment_label,
            ),
        )

    def _publish(self, event_type: EventType, data: dict[str, Any]) -> None:
        self._bus.publish_nowait(PanelEvent(type=event_type, data=data))


def _local_time(timestamp: str) -> str:
    """Render an ISO timestamp as local ``HH:MM:SS``; unparseable input is returned as-is."""
    try:
        return datetime.fromisoformat(timestamp).astimezone().strftime("%H:%M:%S")
    except ValueError:
        return timestamp


def create_panel(
    config_file: str | Path | None = None,
    *,
    log_level: int | str = logging.INFO,
    json_logs: bool = True,
    log_file: str | Path | None = None,
    **overrides: Any,
) -> StatusPanel:
    """Configure logging and build a panel ready to mount.

    Settings are layered: keyword *overrides*, then the optional JSON
    *config_file*, then ``STATUS_PANEL_*`` environment variables, then
    defaults.
    """
    setup_logging(level=log_level, json_output=json_logs, log_file=log_file)
    settings = load_config_file(Path(config_file) if config_file is not None else None)
    settings.update(overrides)
    config = PanelConfig(**settings)
    logger.info(
        "Status panel configured for %s (%s)",
        config.status_url,
        config.environment_label,
    )
    return StatusPanel(config=config)
