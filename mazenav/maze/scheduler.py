"""
Single-consumer step loop.

State changes do not run exploration inline: they call `request_step()`, which
enqueues one "maybe step" request (coalesced while one is already pending). A
single consumer processes requests strictly one after another, either in the
caller's thread (`run_until_idle`) or on a background daemon thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_STEP = object()
_STOP = object()


class StepScheduler:
    def __init__(self, step: Callable[[], object], name: str = "stepper"):
        self._step = step
        self.name = name
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._pending = False
        self._pending_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self.processed = 0

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def request_step(self) -> None:
        with self._pending_lock:
            if self._pending:
                return
            self._pending = True
        self._queue.put(_STEP)

    def _consume(self) -> None:
        with self._pending_lock:
            self._pending = False
        try:
            self._step()
        finally:
            self.processed += 1

    def run_until_idle(self, max_steps: Optional[int] = None) -> int:
        """Drain requests in the calling thread; returns how many were processed."""
        done = 0
        while max_steps is None or done < max_steps:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                if item is not _STOP:
                    self._consume()
                    done += 1
            finally:
                self._queue.task_done()
        return done

    def wait_idle(self) -> None:
        """Block until every queued request, including ones enqueued meanwhile, is processed."""
        self._queue.join()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._loop, name=f"{self.name}-loop", daemon=True)
        self._thread.start()
        logger.info("[Maze] %s loop started", self.name)

    def stop(self, timeout: Optional[float] = None) -> None:
        if not self.running:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            # Still inside a step; keep the handle so start() cannot spawn a second consumer.
            logger.warning("[Maze] %s loop still busy after %.1fs", self.name, timeout or 0.0)
            return
        self._thread = None
        logger.info("[Maze] %s loop stopped", self.name)

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    break
                self._consume()
            except Exception:
                # Keep the loop alive; the step owns its own error reporting.
                logger.exception("[Maze] %s step crashed", self.name)
            finally:
                self._queue.task_done()
