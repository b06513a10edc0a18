"""
Rolling in-memory log buffer.
A logging.Handler that keeps the newest LOG_BUFFER_SIZE records so the dashboard can show
recent proxy activity without a log service. Route and payload travel through `extra`:

    logger.info("Cache hit", extra={"route": "/api/grammar/bar", "data": {"cacheKey": key}})
"""

import logging
from collections import deque
from datetime import datetime, timezone

from api.config import LOG_BUFFER_SIZE

LEVELS = ("info", "warn", "error")


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


class LogBuffer(logging.Handler):
    """Newest-first ring of log entries: {timestamp, level, message, data?, route?, error?}."""

    def __init__(self, capacity: int = LOG_BUFFER_SIZE, level: int = logging.INFO):
        super().__init__(level)
        self._entries: deque[dict] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": _level_name(record.levelno),
                "message": record.getMessage(),
            }
            data = getattr(record, "data", None)
            if data:
                entry["data"] = data
            route = getattr(record, "route", None)
            if route:
                entry["route"] = route
            if record.exc_info and record.exc_info[1] is not None:
                exc = record.exc_info[1]
                entry["error"] = {"type": type(exc).__name__, "message": str(exc)}
            self._entries.appendleft(entry)
        except Exception:
            self.handleError(record)

    def _snapshot(self) -> list[dict]:
        with self.lock:
            return list(self._entries)

    def recent(self, count: int = 100) -> list[dict]:
        return self._snapshot()[:count]

    def by_level(self, level: str, count: int = 100) -> list[dict]:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}. Expected one of {', '.join(LEVELS)}")
        return [e for e in self._snapshot() if e["level"] == level][:count]

    def by_route(self, route: str, count: int = 100) -> list[dict]:
        return [e for e in self._snapshot() if e.get("route") == route][:count]

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()


# Process-wide buffer; ui.app attaches it to the project loggers
log_buffer = LogBuffer()


def install(logger_names: tuple[str, ...] = ("api", "panels", "ui")) -> LogBuffer:
    """Attach the shared buffer to the given loggers once and raise them to INFO."""
    for name in logger_names:
        log = logging.getLogger(name)
        log.setLevel(logging.INFO)
        if log_buffer not in log.handlers:
            log.addHandler(log_buffer)
    return log_buffer
