"""Observer registration for node notifications.

Callbacks run synchronously on the thread performing the reconciliation
pass, in the order they were connected. A callback that raises is logged
and skipped so the pass can finish publishing the new tree state.
"""

import logging
import threading
import time
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

# Callbacks running longer than this delay the whole pass
DEFAULT_SLOW_CALLBACK_MS = 100.0


class Signal:
    """A named notification point that callbacks can subscribe to.

    Attributes:
        name: Signal name used in log messages ("changed", "removed", ...)
        owner: Relative path of the node the signal belongs to
        slow_callback_ms: Threshold for the slow-callback warning
    """

    def __init__(
        self,
        name: str,
        owner: str = "",
        slow_callback_ms: Optional[float] = None,
    ):
        self.name = name
        self.owner = owner
        self.slow_callback_ms = (
            DEFAULT_SLOW_CALLBACK_MS if slow_callback_ms is None else slow_callback_ms
        )
        self._lock = threading.Lock()
        self._callbacks: List[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Subscribe a callback. Returns it, so this works as a decorator."""
        with self._lock:
            self._callbacks.append(callback)
        return callback

    def disconnect(self, callback: Callable[..., Any]) -> bool:
        """Unsubscribe a callback.

        Returns:
            True if the callback was connected, False otherwise
        """
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
        return True

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def emit(self, *args: Any) -> None:
        """Invoke every connected callback with ``args``."""
        # Snapshot so callbacks may connect/disconnect while we iterate
        with self._lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            started = time.perf_counter()
            try:
                callback(*args)
            except Exception:
                logger.exception(
                    f"'{self.name}' subscriber failed for node '{self.owner or '/'}'"
                )
            elapsed_ms = (time.perf_counter() - started) * 1000
            if elapsed_ms > self.slow_callback_ms:
                logger.warning(
                    f"'{self.name}' subscriber for '{self.owner or '/'}' took "
                    f"{elapsed_ms:.1f}ms (limit {self.slow_callback_ms:.0f}ms)"
                )

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, owner={self.owner!r}, callbacks={len(self)})"
