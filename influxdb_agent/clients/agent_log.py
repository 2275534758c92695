"""In-memory agent log and event history.

Plays the role of the host's per-agent log and event tables: every log line
and emitted event is kept in a bounded deque (oldest entries drop off) and
mirrored to Python logging.

Log levels follow the host convention::

    3  info
    4  error
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from influxdb_agent.models import AgentEvent, AgentLogEntry

logger = logging.getLogger(__name__)

INFO = 3
ERROR = 4

# An error counts as recent if it was logged after the last event minus this margin.
_RECENT_ERROR_MARGIN = timedelta(minutes=2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AgentLog:
    """Bounded store of agent log lines and emitted events."""

    def __init__(
        self,
        max_logs: int = 500,
        max_events: int = 500,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._logs: deque[AgentLogEntry] = deque(maxlen=max_logs)
        self._events: deque[AgentEvent] = deque(maxlen=max_events)
        self._event_ids = itertools.count(1)
        self._clock = clock
        self._last_error_at: datetime | None = None
        self._last_event_at: datetime | None = None

    # ── Logging ──────────────────────────────────────────────────────────────

    def log(self, message: str, level: int = INFO) -> AgentLogEntry:
        entry = AgentLogEntry(level=level, message=message, created_at=self._clock())
        self._logs.append(entry)
        if level >= ERROR:
            self._last_error_at = entry.created_at
            logger.error("%s", message)
        else:
            logger.info("%s", message)
        return entry

    def error(self, message: str) -> AgentLogEntry:
        return self.log(message, level=ERROR)

    def logs(self) -> list[AgentLogEntry]:
        """Return log entries, newest first."""
        return list(reversed(self._logs))

    # ── Events ───────────────────────────────────────────────────────────────

    def create_event(self, payload: dict[str, Any]) -> AgentEvent:
        event = AgentEvent(
            id=next(self._event_ids), payload=dict(payload), created_at=self._clock()
        )
        self._events.append(event)
        self._last_event_at = event.created_at
        logger.debug("Emitted event %d: %s", event.id, event.payload)
        return event

    def events(self) -> list[AgentEvent]:
        """Return emitted events, newest first."""
        return list(reversed(self._events))

    # ── Health ───────────────────────────────────────────────────────────────

    def event_created_within(self, days: int) -> bool:
        """True if an event was emitted during the last *days* days."""
        if self._last_event_at is None:
            return False
        return self._last_event_at > self._clock() - timedelta(days=days)

    def recent_error_logs(self) -> bool:
        """True if an error was logged around or after the most recent event."""
        if self._last_event_at is None or self._last_error_at is None:
            return False
        return self._last_error_at > self._last_event_at - _RECENT_ERROR_MARGIN
