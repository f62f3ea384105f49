from __future__ import annotations

import threading
from typing import Any, Callable, Optional


class Debouncer:
    """
    Collapse bursts of recalculation triggers (slider drags) into one call.

    delay=0 runs the callback right away; otherwise each trigger restarts the
    timer and only the latest arguments are used.
    """

    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self.callback = callback
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None
        self._lock = threading.Lock()

    def trigger(self, *args: Any) -> None:
        if self.delay <= 0:
            self.cancel()
            self.callback(*args)
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = args
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            args = self._pending
            self._pending = None
            self._timer = None
        if args is not None:
            self.callback(*args)

    def flush(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            args = self._pending
            self._pending = None
        if args is not None:
            self.callback(*args)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None
