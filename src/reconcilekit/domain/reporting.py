"""Process-wide sink for errors the controller gives up on."""

from __future__ import annotations

import threading
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import ObjectKey

log = getLogger(__name__)

type ErrorHandler = Callable[[BaseException, ObjectKey | None], None]


class ErrorReporter:
    """Logs dropped errors and fans them out to registered handlers.

    Reporting never raises: a failing handler is logged and skipped so a
    worker thread can always continue after reporting.
    """

    def __init__(self, handlers: tuple[ErrorHandler, ...] = ()) -> None:
        self._lock = threading.Lock()
        self._handlers: list[ErrorHandler] = list(handlers)
        self._reported = 0

    def add_handler(self, handler: ErrorHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def remove_handler(self, handler: ErrorHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    @property
    def reported(self) -> int:
        with self._lock:
            return self._reported

    def report(self, error: BaseException, *, key: ObjectKey | None = None) -> None:
        with self._lock:
            self._reported += 1
            handlers = tuple(self._handlers)

        log.error("Unhandled error for key %s: %s", key, error, exc_info=error)
        for handler in handlers:
            try:
                handler(error, key)
            except Exception:
                log.exception("Error handler %r failed", handler)


_default_reporter = ErrorReporter()


def get_error_reporter() -> ErrorReporter:
    return _default_reporter
