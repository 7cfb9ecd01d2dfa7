"""Shared fixtures for the pancake-lab test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from pancake_lab.core.config import Settings
from pancake_lab.domain.atomic import AtomicReference, RetryPolicy
from pancake_lab.domain.order import Order
from pancake_lab.service.factory import Services, build_services


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/property/" in test_path:
            item.add_marker(pytest.mark.property)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


# ---------------------------------------------------------------------------
# Contended references
# ---------------------------------------------------------------------------

class RacingReference(AtomicReference):
    """Reference where a rival writer slips in before each of our swaps.

    ``rivals`` is a list of functions mapping the current snapshot to the
    rival's replacement; one is consumed per ``compare_and_set`` call until
    the list runs out, after which swaps behave normally.
    """

    def __init__(self, value, rivals):
        super().__init__(value)
        self.rivals = list(rivals)
        self.cas_calls = 0

    def compare_and_set(self, expected, new):
        self.cas_calls += 1
        if self.rivals:
            rival = self.rivals.pop(0)
            current = self.get()
            super().compare_and_set(current, rival(current))
        return super().compare_and_set(expected, new)


class LosingReference(AtomicReference):
    """Reference whose compare-and-set never succeeds."""

    def __init__(self, value):
        super().__init__(value)
        self.cas_calls = 0

    def compare_and_set(self, expected, new):
        self.cas_calls += 1
        return False


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

@pytest.fixture
def sleeps() -> list[float]:
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def recording_policy(sleeps) -> RetryPolicy:
    """Default retry shape with a recording sleep."""
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def services() -> Services:
    return build_services(Settings())


@pytest.fixture
def order_service(services):
    return services.orders


@pytest.fixture
def pancake_service(services):
    return services.pancakes


@pytest.fixture
def audit(services):
    return services.audit


@pytest.fixture
def open_order(order_service) -> Order:
    """An OPEN order registered for building 10, room 20."""
    return order_service.create_order(10, 20)


@pytest.fixture
def racing_reference():
    """Factory: ``racing_reference(value, rivals)``."""
    return RacingReference


@pytest.fixture
def losing_reference():
    """Factory: ``losing_reference(value)``."""
    return LosingReference
