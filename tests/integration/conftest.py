"""Integration test configuration.

Runs the reservation drivers against a real in-memory container so that
every committed area is checked against the occupancy grid.
"""

import pytest

from tilerpack.adapters.outbound.in_memory_container import InMemoryContainer
from tilerpack.application.reservation_service import ReservationService


@pytest.fixture
def service(container: InMemoryContainer) -> ReservationService:
    """Reservation service over the empty reference container."""
    return ReservationService(container)


@pytest.fixture
def narrow_container() -> InMemoryContainer:
    """A single 64-slot band, one slot row tall."""
    return InMemoryContainer(width=64, height=1)
