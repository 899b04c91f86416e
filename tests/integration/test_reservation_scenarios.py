"""End-to-end reservation scenarios against the in-memory container."""

from unittest.mock import MagicMock

import pytest

from tilerpack.adapters.config.settings import TilerSettings
from tilerpack.adapters.outbound.in_memory_container import InMemoryContainer, Region
from tilerpack.application.reservation_service import ReservationService
from tilerpack.domain.value_objects import PixelFormat, ReservationOutcome

pytestmark = pytest.mark.integration

FULL = 256 * 128


def reserve_nv12(service: ReservationService, n: int, can_together: bool = True):
    return service.reserve_nv12(
        n=n,
        width=256,
        height=64,
        align=256,
        offset=128,
        group_id=1,
        process="pid-1",
        can_together=can_together,
    )


def reserve_blocks(service: ReservationService, n: int, fmt=PixelFormat.BIT8, width=256):
    return service.reserve_blocks(
        n=n,
        fmt=fmt,
        width=width,
        height=64,
        align=256,
        offset=0,
        group_id=2,
        process="pid-1",
    )


class TestNv12Scenarios:
    def test_nine_buffers_share_one_band(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = reserve_nv12(service, 9)

        assert result.outcome is ReservationOutcome.RESERVED
        assert container.reserved_for("pid-1", 1) == [
            Region(x=0, y=0, width=64, height=1, count=9)
        ]
        assert container.free_slots() == FULL - 64

    def test_unreserve_returns_every_slot(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        reserve_nv12(service, 9)

        service.unreserve(1, "pid-1")

        assert container.free_slots() == FULL
        assert container.reserved_for("pid-1", 1) == []

    def test_separate_planes(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = reserve_nv12(service, 9, can_together=False)

        assert result.reserved == 9
        regions = container.reserved_for("pid-1", 1)
        assert [(r.fmt, r.x, r.width) for r in regions] == [
            (PixelFormat.BIT8, 0, 64),
            (PixelFormat.BIT16, 64, 32),
        ]
        assert container.free_slots() == FULL - 96

    def test_co_packing_disabled_from_settings(self, container: InMemoryContainer) -> None:
        settings = TilerSettings(co_packing_enabled=False)
        service = ReservationService(container, co_packing_enabled=settings.co_packing_enabled)

        reserve_nv12(service, 9, can_together=True)

        assert [r.fmt for r in container.reserved_for("pid-1", 1)] == [
            PixelFormat.BIT8,
            PixelFormat.BIT16,
        ]

    def test_exhausted_container_keeps_first_round(
        self, narrow_container: InMemoryContainer
    ) -> None:
        service = ReservationService(narrow_container)

        result = reserve_nv12(service, 20)

        assert result.outcome is ReservationOutcome.PARTIAL
        assert result.reserved == 9
        assert result.shortfall == 11
        assert narrow_container.free_slots() == 0

    def test_committed_pairs_never_share_slots(
        self,
        service: ReservationService,
        container: InMemoryContainer,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Three-slot buffers on a 16-slot alignment must not interleave their planes."""
        lay_nv12 = MagicMock(wraps=container.lay_nv12)
        monkeypatch.setattr(container, "lay_nv12", lay_nv12)

        result = service.reserve_nv12(5, 192, 64, 1024, 768, 1, "pid-1", True)

        assert result.outcome is ReservationOutcome.RESERVED
        assert lay_nv12.call_count == 2
        for (count, area, w, _, _, pairs), _ in lay_nv12.call_args_list:
            spans = sorted(
                [(luma, luma + w) for luma, _ in pairs[:count]]
                + [(chroma, chroma + (w + 1) // 2) for _, chroma in pairs[:count]]
            )
            assert all(end <= area for _, end in spans)
            assert all(a_end <= b_start for (_, a_end), (b_start, _) in zip(spans, spans[1:]))
        assert container.free_slots() == FULL - 128

    def test_odd_offset_is_rejected(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = service.reserve_nv12(9, 256, 64, 256, 127, 1, "pid-1", True)

        assert result.outcome is ReservationOutcome.REJECTED
        assert container.free_slots() == FULL

    def test_more_than_half_the_container_is_rejected(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = reserve_nv12(service, FULL // 2 + 1)

        assert result.outcome is ReservationOutcome.REJECTED
        assert container.free_slots() == FULL


class TestBlockScenarios:
    def test_two_rows_of_narrow_buffers(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = reserve_blocks(service, 20)

        assert result.outcome is ReservationOutcome.RESERVED
        regions = container.reserved_for("pid-1", 2)
        assert [(r.x, r.width, r.count) for r in regions] == [(0, 64, 16), (64, 64, 4)]
        assert container.free_slots() == FULL - 128

    def test_exhausted_container_keeps_first_round(
        self, narrow_container: InMemoryContainer
    ) -> None:
        service = ReservationService(narrow_container)

        result = reserve_blocks(service, 20)

        assert result.outcome is ReservationOutcome.PARTIAL
        assert result.reserved == 16

    def test_wide_buffers_are_declined(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        result = reserve_blocks(service, 4, fmt=PixelFormat.BIT32, width=512)

        assert result.outcome is ReservationOutcome.DECLINED
        assert container.free_slots() == FULL

    def test_unreserve_after_blocks(
        self, service: ReservationService, container: InMemoryContainer
    ) -> None:
        reserve_blocks(service, 20)

        service.unreserve(2, "pid-1")

        assert container.free_slots() == FULL
