"""Logging setup and forwarding of records to the host's log API."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

from opencode_mem.host import HostLog

SERVICE_NAME = "opencode-mem"

_LEVEL_NAMES = (
    (logging.ERROR, "error"),
    (logging.WARNING, "warn"),
    (logging.INFO, "info"),
)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def host_level(levelno: int) -> str:
    """Map a logging level number to the host's level vocabulary."""
    for threshold, name in _LEVEL_NAMES:
        if levelno >= threshold:
            return name
    return "debug"


class HostLogHandler(logging.Handler):
    """Forwards opencode_mem log records to a host log callback.

    The callback may be sync or async; coroutines are scheduled on the
    running loop and not awaited.
    """

    def __init__(self, callback: HostLog, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._callback = callback
        self._pending: set = set()

    def to_body(self, record: logging.LogRecord) -> dict[str, Any]:
        body: dict[str, Any] = {
            "service": SERVICE_NAME,
            "level": host_level(record.levelno),
            "message": record.getMessage(),
        }
        error = getattr(record, "error", None)
        if error is not None:
            body["extra"] = {"error": error}
        return body

    def emit(self, record: logging.LogRecord) -> None:
        try:
            result = self._callback(self.to_body(record))
            if inspect.isawaitable(result):
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    # No loop to deliver on: drop the record
                    if inspect.iscoroutine(result):
                        result.close()
                    return
                task = asyncio.ensure_future(result, loop=loop)
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        except Exception:
            self.handleError(record)


def attach_host_logger(callback: HostLog, level: int = logging.INFO) -> HostLogHandler:
    """Route all ``opencode_mem.*`` records to the host."""
    handler = HostLogHandler(callback, level)
    package_logger = logging.getLogger("opencode_mem")
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(level)
    package_logger.addHandler(handler)
    return handler
