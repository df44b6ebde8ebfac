"""Observer hub that pushes full snapshots to subscribers."""

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Observer = Callable[[list[T]], None]


class Broadcaster(Generic[T]):
    """Synchronously notify observers with the current snapshot.

    Observers run in subscription order. An observer that raises is logged
    and skipped so the rest still receive the update.
    """

    def __init__(self, snapshot: Callable[[], list[T]]):
        self._snapshot = snapshot
        self._observers: list[tuple[int, Observer]] = []
        self._next_token = 0
        self._lock = threading.RLock()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and deliver the current state immediately.

        Returns:
            An unsubscribe function, safe to call more than once
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._observers.append((token, observer))
            self._notify(observer, self._snapshot())

        def unsubscribe() -> None:
            with self._lock:
                self._observers = [(t, o) for t, o in self._observers if t != token]

        return unsubscribe

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def publish(self) -> None:
        """Send the current snapshot to every observer."""
        with self._lock:
            observers = [o for _, o in self._observers]
            if not observers:
                return
            snapshot = self._snapshot()
            for observer in observers:
                # Each observer gets its own list
                self._notify(observer, list(snapshot))

    def _notify(self, observer: Observer, snapshot: list[T]) -> None:
        try:
            observer(snapshot)
        except Exception as e:
            logger.error(f"Observer {observer!r} failed: {e}")
