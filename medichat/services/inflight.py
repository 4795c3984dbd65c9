"""Busy flag per (user, feature): a second submit of the same form is refused while the first one runs."""
import threading
from contextlib import contextmanager


class RequestInFlight(RuntimeError):
    pass


class InFlightGuard:
    def __init__(self):
        self._busy: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    def is_busy(self, user_id: str, feature: str) -> bool:
        with self._lock:
            return (user_id, feature) in self._busy

    @contextmanager
    def hold(self, user_id: str, feature: str):
        key = (user_id, feature)
        with self._lock:
            if key in self._busy:
                raise RequestInFlight("An analysis for this form is already in progress.")
            self._busy.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(key)


inflight = InFlightGuard()
