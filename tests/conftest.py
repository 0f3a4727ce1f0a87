"""
Pytest configuration and shared fixtures for the planting ledger tests.
"""
import itertools
import os
import tempfile

# Keep the event log out of the package tree and skip the simulated hand-off delay.
os.environ.setdefault("JUNGLE404_DATA_DIR", tempfile.mkdtemp(prefix="jungle404-tests-"))
os.environ.setdefault("PROCESSING_DELAY_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient

from jungle404.core import PlantingLedger
from jungle404.main import create_app
from jungle404.processing import OrderProcessor


class SequentialIds:
    """Deterministic id source: prefix-1, prefix-2, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self._counter = itertools.count(1)

    def new_id(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


class FixedJitter:
    def __init__(self, value: float = 0.0) -> None:
        self.value = value
        self.calls = []

    def offset(self, radius: float) -> float:
        self.calls.append(radius)
        return self.value


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return PlantingLedger(id_generator=SequentialIds(), jitter=FixedJitter(0.01), clock=clock)


@pytest.fixture
def app():
    return create_app(processor=OrderProcessor(delay_seconds=0))


@pytest.fixture
def client(app):
    """TestClient with the lifespan running, so app.state.ledger exists."""
    with TestClient(app) as test_client:
        yield test_client
