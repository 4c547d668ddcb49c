"""Shared fixtures: a coordinator over MockEngine with a fixed clock."""
from datetime import datetime, timezone

import pytest

from salarycmp.engine.mock import MockEngine
from salarycmp.server.coordinator import ComparisonCoordinator

FIXED_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    return MockEngine(secret=b"test-secret")


@pytest.fixture
def coordinator(engine):
    return ComparisonCoordinator(engine, clock=lambda: FIXED_TIME)


@pytest.fixture
def submit(coordinator, engine):
    """Encrypt `amount` and submit it as `principal`."""
    def _submit(principal, amount):
        encrypted = engine.encrypt_input(amount)
        return coordinator.submit_value(principal, encrypted.handle, encrypted.proof)
    return _submit


@pytest.fixture
def fixed_time():
    return FIXED_TIME
