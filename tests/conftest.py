"""Pytest configuration and shared fixtures.

This module defines:
- Test markers (unit, integration)
- Shared fixtures for fake port implementations
- Reference OMAP4 TILER geometry
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from tilerpack.adapters.outbound.in_memory_container import DEFAULT_GEOMETRY, InMemoryContainer
from tilerpack.domain.value_objects import BandConfig, BlockGeometry

# ---------------------------------------------------------------------------
# Reference container geometry (OMAP4 TILER)
# ---------------------------------------------------------------------------

PAGE_SIZE = 4096
CONTAINER_WIDTH = 256  # slots
CONTAINER_HEIGHT = 128  # slots
BAND8 = 64  # 4096 / 64-pixel 8-bit slots
BAND16 = 64  # 4096 / 32-pixel 16-bit slots / 2 bytes


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Fast unit tests with mocked boundaries",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests against the in-memory container",
    )


@pytest.fixture
def reference_bands() -> BandConfig:
    """Band constants of the reference container."""
    return BandConfig(
        band8=BAND8,
        band16=BAND16,
        container_width=CONTAINER_WIDTH,
        container_height=CONTAINER_HEIGHT,
        page_size=PAGE_SIZE,
    )


@pytest.fixture
def nv12_geometry() -> BlockGeometry:
    """Slot geometry of a 256x64 NV12 buffer at byte offset 128, align 256."""
    return BlockGeometry(width=4, height=1, band=BAND8, alignment=4, offset=2)


@pytest.fixture
def fake_ops(nv12_geometry: BlockGeometry) -> MagicMock:
    """Fake TilerOpsPort for unit testing.

    Returns a mock that implements the TilerOpsPort protocol with the
    reference geometry. Commit primitives report every requested buffer
    as laid out unless a test overrides their side effects.
    """
    mock = MagicMock()
    mock.width = CONTAINER_WIDTH
    mock.height = CONTAINER_HEIGHT
    mock.page_size = PAGE_SIZE
    mock.geometry.side_effect = lambda fmt: DEFAULT_GEOMETRY[fmt]
    mock.analyze.return_value = nv12_geometry
    mock.group_context.return_value = SimpleNamespace(reserved=[])
    mock.lay_2d.side_effect = lambda fmt, count, *args: count
    mock.lay_nv12.side_effect = lambda count, *args: count
    return mock


@pytest.fixture
def container() -> InMemoryContainer:
    """Empty reference container."""
    return InMemoryContainer(
        width=CONTAINER_WIDTH,
        height=CONTAINER_HEIGHT,
        page_size=PAGE_SIZE,
    )
