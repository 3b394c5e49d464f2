"""Latest-outcome log of the calls made by the panel."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

from models import CallFailure, CallLogEntry, CallResult, CallStatus, CallSuccess

logger = logging.getLogger("status_panel.call_log")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CallLogRecorder:
    """Keeps one entry per endpoint key: the most recent outcome.

    Recording a key that already exists overwrites its entry in place,
    so iteration order is the order in which keys were first seen.  The
    log never grows beyond the number of distinct endpoints called.
    """

    def __init__(self, now_fn: Callable[[], datetime] = _utc_now) -> None:
        self._entries: dict[str, CallLogEntry] = {}
        self._now_fn = now_fn

    def record(self, endpoint: str, result: CallResult) -> CallLogEntry:
        """Upsert the entry for *endpoint* with *result* stamped at now."""
        timestamp = self._now_fn().isoformat()
        if isinstance(result, CallSuccess):
            entry = CallLogEntry(
                endpoint=endpoint,
                timestamp=timestamp,
                status=CallStatus.SUCCESS,
                data=result.payload,
            )
        elif isinstance(result, CallFailure):
            entry = CallLogEntry(
                endpoint=endpoint,
                timestamp=timestamp,
                status=CallStatus.ERROR,
                error=result.error,
            )
        else:
            raise TypeError(f"Unsupported call result: {type(result).__name__}")

        # Assigning to an existing key keeps its original position
        self._entries[endpoint] = entry
        logger.debug(
            "Recorded %s for %s",
            entry.status,
            endpoint,
            extra={"endpoint": endpoint, "status": entry.status.value},
        )
        return entry

    def record_success(self, endpoint: str, payload: Any) -> CallLogEntry:
        return self.record(endpoint, CallSuccess(payload=payload))

    def record_failure(self, endpoint: str, error: BaseException | str) -> CallLogEntry:
        message = error if isinstance(error, str) else str(error)
        return self.record(endpoint, CallFailure(error=message))

    def entries(self) -> list[tuple[str, CallLogEntry]]:
        """Return ``(endpoint, entry)`` pairs in first-seen order."""
        return list(self._entries.items())

    def get(self, endpoint: str) -> CallLogEntry | None:
        return self._entries.get(endpoint)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
