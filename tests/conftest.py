"""Shared fixtures for alert engine tests."""

import random
from concurrent.futures import Executor, Future
from datetime import datetime

import pytest

from alert_engine.channels import (
    ConsoleNotifier,
    DeliveryChannels,
    LoggingEmailChannel,
    LoggingMessagingChannel,
)
from alert_engine.scheduler import ManualTicker
from alert_engine.service import AlertService
from alert_engine.storage import MemoryKeyValueStore


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.submitted = 0
        self._shutdown = False

    def submit(self, fn, /, *args, **kwargs):
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, *, cancel_futures=False):
        self._shutdown = True


class FakeClock:
    """Settable clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    """Clock fixed at noon, outside the default 20:00-08:00 quiet hours."""
    return FakeClock(datetime(2024, 6, 3, 12, 0, 0))


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def executor():
    return InlineExecutor()


@pytest.fixture
def channels():
    return DeliveryChannels(
        push=ConsoleNotifier(),
        email=LoggingEmailChannel(),
        messaging=LoggingMessagingChannel(),
    )


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def service(kv_store, channels, clock, ticker, executor):
    """Alert service with deterministic collaborators and no synthetic jobs."""
    svc = AlertService(
        kv_store=kv_store,
        channels=channels,
        clock=clock,
        ticker=ticker,
        executor=executor,
        rng=random.Random(42),
        synthetic_enabled=False,
    )
    yield svc
    svc.shutdown()
