"""
scheduler.py – fixed-interval job runner
========================================

• `start()` spawns one daemon thread that fires `job` every `interval` s.
• `stop()` wakes the thread and joins it.
• `run_once()` runs a single pass in the caller's thread (tests, CLI).

A tick that arrives while the previous pass is still running is skipped,
never queued, so passes never overlap.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from shared.logging import get_logger

log = get_logger("forex_service.scheduler")


class RefreshScheduler:
    def __init__(self, job: Callable[[], Any], interval: float,
                 name: str = "refresh") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.job = job
        self.interval = interval
        self.name = name
        self.passes = 0
        self.skipped = 0
        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        """Run one pass; False if another pass held the slot."""
        if not self._busy.acquire(blocking=False):
            self.skipped += 1
            log.warning("%s: previous pass still running – tick skipped", self.name)
            return False
        try:
            self.job()
            self.passes += 1
        except Exception as exc:                          # noqa: BLE001
            log.exception("%s: pass failed – %s", self.name, exc)
        finally:
            self._busy.release()
        return True

    def _loop(self) -> None:
        log.info("%s scheduler up (interval %.0f s)", self.name, self.interval)
        while not self._stop.is_set():
            t0 = time.monotonic()
            self.run_once()
            self._stop.wait(max(0.0, self.interval - (time.monotonic() - t0)))
        log.info("%s scheduler stopped", self.name)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def join(self) -> None:
        """Block until stopped (used by the loader's main)."""
        while self.running:
            time.sleep(1)
