from __future__ import annotations

import logging
import threading
import time
from enum import StrEnum
from typing import Any, Callable, Protocol

from .ingestion import IngestionReport

logger = logging.getLogger(__name__)


class CycleRunner(Protocol):
    def run_cycle(self) -> IngestionReport: ...


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING_CYCLE = "running-cycle"


class IngestionScheduler:
    """Runs an ingestion cycle at startup and then on a fixed interval.

    Ticks are anchored to the start time, so a slow cycle does not shift the
    cadence. A tick that falls due while a cycle is still running is skipped
    rather than started in parallel.
    """

    def __init__(
        self,
        ingestion: CycleRunner,
        *,
        interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be > 0"
            raise ValueError(msg)

        self.ingestion = ingestion
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._cycle_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        self.state = SchedulerState.IDLE
        self.cycles_run = 0
        self.ticks_skipped = 0
        self.last_report: IngestionReport | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            msg = "scheduler already started"
            raise RuntimeError(msg)
        logger.info("Starting quote ingestion (every %.0f seconds)", self.interval_seconds)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="quote-ingestion", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Ingestion thread did not finish within %s seconds", timeout)
        self._thread = None
        logger.info("Quote ingestion stopped")

    def run_once(self) -> IngestionReport | None:
        """Run one cycle now, or return None if a cycle is already in progress."""
        if not self._cycle_lock.acquire(blocking=False):
            self._count(ticks_skipped=1)
            logger.warning("Previous ingestion cycle still running; skipping this tick")
            return None
        try:
            self.state = SchedulerState.RUNNING_CYCLE
            report = self.ingestion.run_cycle()
            self.last_report = report
            return report
        finally:
            self._count(cycles_run=1)
            self.state = SchedulerState.IDLE
            self._cycle_lock.release()

    def status(self) -> dict[str, Any]:
        with self._counter_lock:
            cycles_run, ticks_skipped = self.cycles_run, self.ticks_skipped
        return {
            "state": self.state.value,
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "cycles_run": cycles_run,
            "ticks_skipped": ticks_skipped,
            "last_report": self.last_report.as_dict() if self.last_report is not None else None,
        }

    def _count(self, *, cycles_run: int = 0, ticks_skipped: int = 0) -> None:
        with self._counter_lock:
            self.cycles_run += cycles_run
            self.ticks_skipped += ticks_skipped

    def _run_loop(self) -> None:
        next_tick = self._clock()
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Ingestion cycle failed unexpectedly")

            next_tick += self.interval_seconds
            now = self._clock()
            if now > next_tick:
                missed = int((now - next_tick) // self.interval_seconds) + 1
                self._count(ticks_skipped=missed)
                logger.warning("Ingestion cycle overran the interval; skipping %d tick(s)", missed)
                next_tick += missed * self.interval_seconds

            if self._stop_event.wait(max(0.0, next_tick - self._clock())):
                break


__all__ = ["CycleRunner", "IngestionScheduler", "SchedulerState"]
