"""Data models for the status panel."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr, field_validator

# --- Status snapshot ---


class ModuleName(StrEnum):
    """Backend modules reported in every status payload."""

    SESSION = "session"
    DOCUMENT_PROCESSOR = "document_processor"
    RETRIEVAL = "retrieval"
    GENERATION = "generation"


class ModuleStatus(BaseModel):
    """Status label reported for a single backend module."""

    status: str = "unknown"

    model_config = {"frozen": True}


class MemoryUsage(BaseModel):
    """Process memory counters, all in bytes."""

    rss: int = Field(ge=0)
    heap_used: int = Field(ge=0)
    heap_total: int = Field(ge=0)
    external: int = Field(ge=0)

    model_config = {"frozen": True}


class PerformanceMetrics(BaseModel):
    """Request-level metrics; each counter may be missing on its own."""

    avg_response_time: float | None = Field(default=None, ge=0)
    total_requests: int | None = Field(default=None, ge=0)
    active_sessions: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}


class StatusSnapshot(BaseModel):
    """One complete status payload, valid until the next successful fetch.

    ``performance`` is ``None`` while the backend has not collected any
    metrics yet, which is not the same as metrics that are all zero.
    """

    status: str
    uptime: int = Field(ge=0, description="Seconds since process start")
    modules: dict[str, ModuleStatus] = Field(default_factory=dict)
    memory_usage: MemoryUsage
    performance: PerformanceMetrics | None = None

    model_config = {"frozen": True}

    _payload: dict[str, Any] | None = PrivateAttr(default=None)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> StatusSnapshot:
        """Validate *data* and keep it verbatim for the debug view."""
        snapshot = cls.model_validate(data)
        snapshot._payload = dict(data)
        return snapshot

    @field_validator("uptime", mode="before")
    @classmethod
    def _truncate_uptime(cls, v: Any) -> Any:
        """Accept fractional uptimes (``process.uptime()`` style) as whole seconds."""
        if isinstance(v, float) and math.isfinite(v):
            return math.floor(v)
        return v

    @field_validator("modules", mode="before")
    @classmethod
    def _normalise_modules(cls, v: Any) -> Any:
        """Normalise bare status strings to ``{"status": "..."}`` objects."""
        if isinstance(v, dict):
            return {
                name: {"status": info} if isinstance(info, str) else info
                for name, info in v.items()
            }
        return v

    @property
    def uptime_seconds(self) -> int:
        return self.uptime

    def module_status(self, name: str) -> str | None:
        """Return the status label for module *name*, or ``None`` if unreported."""
        info = self.modules.get(name)
        return info.status if info is not None else None

    @property
    def raw_payload(self) -> dict[str, Any]:
        """The JSON object as received, unknown keys included.

        Snapshots built without :meth:`from_payload` fall back to their own dump.
        """
        if self._payload is not None:
            return self._payload
        return self.model_dump(mode="json")


# --- Call log ---


class CallStatus(StrEnum):
    """Outcome of a single logged call."""

    SUCCESS = "success"
    ERROR = "error"


class CallSuccess(BaseModel):
    """Successful call carrying an opaque payload reference."""

    payload: Any = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class CallFailure(BaseModel):
    """Failed call carrying the error message."""

    error: str

    model_config = {"frozen": True}


CallResult = CallSuccess | CallFailure


class CallLogEntry(BaseModel):
    """Latest outcome recorded for one endpoint key."""

    endpoint: str
    timestamp: str
    status: CallStatus
    data: Any = None
    error: str | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


# --- Presentation ---


class Severity(StrEnum):
    """Display bucket derived from a free-form status label."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEFAULT = "default"


class Uptime(BaseModel):
    """Uptime split into whole hours and leftover minutes."""

    hours: int
    minutes: int

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m"


class ModuleView(BaseModel):
    name: str
    display_name: str
    status: str
    severity: Severity


class PerformanceView(BaseModel):
    avg_response_time: str
    total_requests: str
    active_sessions: str


class SnapshotView(BaseModel):
    """Display fields derived from a :class:`StatusSnapshot`."""

    status: str
    severity: Severity
    uptime: Uptime
    uptime_label: str
    memory_rss: str
    memory_heap_used: str
    modules: list[ModuleView] = Field(default_factory=list)
    performance: PerformanceView | None = None
    sessions_title: str
    active_sessions_label: str
    requests_caption: str


class CallLogView(BaseModel):
    endpoint: str
    status: CallStatus
    time: str
    error: str | None = None


class ConnectionInfo(BaseModel):
    api_base_url: str
    ws_url: str
    environment: str


class DebugView(BaseModel):
    """Contents of the debug section, only rendered in debug mode."""

    api_calls: list[CallLogView] = Field(default_factory=list)
    api_call_count: int = 0
    raw_snapshot: str | None = None
    connection: ConnectionInfo


class PanelView(BaseModel):
    """Everything a renderer needs to draw the panel."""

    panel: str = "status"
    title: str = "System Stats"
    subtitle: str = "Live system status and performance monitoring"
    loading: bool = False
    error: str | None = None
    debug_mode: bool = False
    snapshot: SnapshotView | None = None
    debug: DebugView | None = None
