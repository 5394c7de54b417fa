"""Cancellation tokens

A token is cancelled at most once. Callbacks registered on it run exactly
once, either at cancellation time or immediately when registered on an
already-cancelled token. Child tokens are cancelled with their parent but
never cancel the parent themselves.
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

class CancellationToken:
    """Thread-safe, one-shot cancellation signal"""

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._parent = parent
        if parent is not None:
            parent.add_callback(self.cancel)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel the token and run registered callbacks (idempotent)"""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        self.detach()
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback %r failed", callback)

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def detach(self) -> None:
        """Stop following the parent token"""
        parent, self._parent = self._parent, None
        if parent is not None:
            parent.remove_callback(self.cancel)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled; returns True if the token was cancelled"""
        return self._event.wait(timeout)

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)
