"""Pure derivations from a status snapshot to display fields."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from models import (
    ModuleView,
    PerformanceMetrics,
    PerformanceView,
    Severity,
    SnapshotView,
    StatusSnapshot,
    Uptime,
)

_BYTES_PER_MB = 1024 * 1024

_SEVERITY_BY_LABEL: dict[str, Severity] = {
    "healthy": Severity.SUCCESS,
    "active": Severity.SUCCESS,
    "running": Severity.SUCCESS,
    "warning": Severity.WARNING,
    "error": Severity.ERROR,
    "failed": Severity.ERROR,
}


def format_uptime(seconds: int | float) -> Uptime:
    """Split *seconds* into whole hours and the remaining whole minutes.

    Negative input is outside the contract but still returns a value
    (Python floor semantics apply).  Non-finite input yields ``0h 0m``.
    """
    if isinstance(seconds, float) and not math.isfinite(seconds):
        return Uptime(hours=0, minutes=0)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return Uptime(hours=hours, minutes=minutes)


def _fixed(value: int | float | Decimal, places: int) -> str:
    """Fixed-point text with exact halves rounded away from zero.

    ``format()`` rounds halves to even (``0.25`` -> ``"0.2"``); display
    values here round them up (``"0.3"``).
    """
    if isinstance(value, float) and not math.isfinite(value):
        return f"{value:.{places}f}"
    step = Decimal(1).scaleb(-places)
    return f"{Decimal(value).quantize(step, rounding=ROUND_HALF_UP):f}"


def format_bytes(num_bytes: int | float) -> str:
    """Return *num_bytes* in megabytes with exactly one fractional digit."""
    if isinstance(num_bytes, float) and not math.isfinite(num_bytes):
        return _fixed(num_bytes, 1)
    return _fixed(Decimal(num_bytes) / _BYTES_PER_MB, 1)


def format_memory(num_bytes: int | float) -> str:
    return f"{format_bytes(num_bytes)} MB"


def classify_severity(label: str | None) -> Severity:
    """Map a free-form status label to a severity bucket (case-insensitive)."""
    if not label:
        return Severity.DEFAULT
    return _SEVERITY_BY_LABEL.get(label.lower(), Severity.DEFAULT)


def module_display_name(name: str) -> str:
    """``document_processor`` -> ``DOCUMENT PROCESSOR`` (first underscore only)."""
    return name.replace("_", " ", 1).upper()


def format_count(value: int | None) -> str:
    if value is None:
        return "0"
    return f"{value:,}"


def format_response_time(ms: float | None) -> str:
    if ms is None:
        return "0ms"
    return f"{_fixed(ms, 0)}ms"


def present_performance(performance: PerformanceMetrics | None) -> PerformanceView | None:
    if performance is None:
        return None
    return PerformanceView(
        avg_response_time=format_response_time(performance.avg_response_time),
        total_requests=format_count(performance.total_requests),
        active_sessions=str(performance.active_sessions or 0),
    )


def present_snapshot(snapshot: StatusSnapshot) -> SnapshotView:
    """Build every display field for *snapshot*.

    Missing performance data is reported as such instead of as zeros.
    """
    uptime = format_uptime(snapshot.uptime)
    performance = snapshot.performance

    modules = [
        ModuleView(
            name=name,
            display_name=module_display_name(name),
            status=info.status,
            severity=classify_severity(info.status),
        )
        for name, info in snapshot.modules.items()
    ]

    if performance is not None:
        sessions_title = "Active sessions"
        active_sessions_label = (
            str(performance.active_sessions)
            if performance.active_sessions is not None
            else "N/A"
        )
        requests_caption = f"Total requests: {format_count(performance.total_requests)}"
    else:
        sessions_title = "Performance data"
        active_sessions_label = "N/A"
        requests_caption = "Collecting data..."

    return SnapshotView(
        status=snapshot.status,
        severity=classify_severity(snapshot.status),
        uptime=uptime,
        uptime_label=str(uptime),
        memory_rss=format_memory(snapshot.memory_usage.rss),
        memory_heap_used=format_memory(snapshot.memory_usage.heap_used),
        modules=modules,
        performance=present_performance(performance),
        sessions_title=sessions_title,
        active_sessions_label=active_sessions_label,
        requests_caption=requests_caption,
    )
