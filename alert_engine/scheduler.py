"""Recurring job scheduling owned by the engine.

Jobs are registered with `every()` and only run between `start()` and
`stop()`. Three implementations share the interface:

- AsyncioTicker: background asyncio tasks (start inside a running loop)
- ThreadingTicker: one daemon thread per job, for non-async hosts
- ManualTicker: time only moves when `advance()` is called (tests)
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    """A callback to run every `interval` seconds."""
    name: str
    interval: float
    callback: Callable[[], None]

    def run(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Error in scheduled job {self.name}: {e}")


class Ticker(ABC):
    """Base class for recurring schedulers."""

    def __init__(self):
        self.jobs: list[ScheduledJob] = []
        self._running = False

    def every(self, interval: float, callback: Callable[[], None], name: str = "") -> ScheduledJob:
        """Register a recurring job. Takes effect on the next start()."""
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        job = ScheduledJob(name=name or getattr(callback, "__name__", "job"),
                           interval=interval, callback=callback)
        self.jobs.append(job)
        return job

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    def start(self) -> None:
        """Begin running registered jobs."""

    @abstractmethod
    def stop(self) -> None:
        """Stop all jobs. Safe to call repeatedly."""


class AsyncioTicker(Ticker):
    """Runs each job as an asyncio task on the current event loop."""

    def __init__(self):
        super().__init__()
        self._tasks: list[asyncio.Task] = []

    def start(self) -> None:
        if self._running:
            logger.warning("Ticker already running")
            return
        # Raises RuntimeError when no loop is running
        loop = asyncio.get_running_loop()
        self._running = True
        self._tasks = [loop.create_task(self._loop(job)) for job in self.jobs]

    async def _loop(self, job: ScheduledJob) -> None:
        while self._running:
            await asyncio.sleep(job.interval)
            if not self._running:
                break
            job.run()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()


class ThreadingTicker(Ticker):
    """Runs each job on its own daemon thread."""

    def __init__(self):
        super().__init__()
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        if self._running:
            logger.warning("Ticker already running")
            return
        self._running = True
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self._loop, args=(job,), name=f"ticker-{job.name}", daemon=True
            )
            for job in self.jobs
        ]
        for thread in self._threads:
            thread.start()

    def _loop(self, job: ScheduledJob) -> None:
        while not self._stop_event.wait(job.interval):
            job.run()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout)
        self._threads.clear()


class ManualTicker(Ticker):
    """Deterministic ticker driven by `advance()`."""

    def __init__(self):
        super().__init__()
        self.now = 0.0
        self._next_due: dict[int, float] = {}

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._next_due = {id(job): self.now + job.interval for job in self.jobs}

    def stop(self) -> None:
        self._running = False
        self._next_due.clear()

    def advance(self, seconds: float) -> int:
        """Move time forward, running every job that falls due, in order.

        Returns:
            Number of job runs performed
        """
        target = self.now + seconds
        runs = 0
        while self._running:
            due = [
                (self._next_due[id(job)], i, job)
                for i, job in enumerate(self.jobs)
                if id(job) in self._next_due and self._next_due[id(job)] <= target
            ]
            if not due:
                break
            when, _, job = min(due, key=lambda d: (d[0], d[1]))
            self.now = when
            self._next_due[id(job)] = when + job.interval
            job.run()
            runs += 1
        self.now = target
        return runs


def default_ticker() -> Ticker:
    """AsyncioTicker inside a running event loop, ThreadingTicker otherwise."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return ThreadingTicker()
    return AsyncioTicker()
