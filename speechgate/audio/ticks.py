"""Periodic tick sources driving the sampler and the elapsed-time ticker."""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TickSource(Protocol):
    """Scheduling abstraction injected into the recording session manager."""

    @property
    def running(self) -> bool:
        ...

    def start(self, callback: Callable[[], None]) -> None:
        ...

    def stop(self) -> None:
        ...


class ThreadingTickSource:
    """Invokes a callback every `interval` seconds on a daemon thread."""

    def __init__(self, interval: float, name: str = "tick"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.name = name
        self._callback: Optional[Callable[[], None]] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self, callback: Callable[[], None]) -> None:
        if self.running:
            logger.warning(f"Tick source {self.name} already running")
            return
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,), daemon=True)
        self._thread.name = f"TickSource-{self.name}"
        self._thread.start()

    def stop(self) -> None:
        """Halt the ticks; returns once no further callback can run."""
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=2.0)
        if thread.is_alive():
            logger.warning(f"Tick thread {thread.name} did not stop cleanly")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Error in {self.name} tick callback: {e}", exc_info=True)
