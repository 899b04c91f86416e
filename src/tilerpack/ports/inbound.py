"""Inbound port interfaces (driving adapters).

These ports define the contracts for the surrounding driver or service
to request reservations from the packing core.

All interfaces use Protocol (PEP 544) for structural typing, allowing
implicit implementation without inheritance.
"""

from typing import Any, Protocol

from tilerpack.domain.value_objects import PixelFormat, ReservationResult


class ReservationPort(Protocol):
    """Port for reserving container areas ahead of buffer allocation.

    Thread safety: Not thread-safe. Callers must serialize reservation
    and release calls for the same group.
    """

    def reserve_nv12(
        self,
        n: int,
        width: int,
        height: int,
        align: int,
        offset: int,
        group_id: int,
        process: Any,
        can_together: bool,
    ) -> ReservationResult:
        """Reserve areas for n NV12 buffers.

        Args:
            n: Number of buffers.
            width: Luma width in pixels.
            height: Luma height in pixels.
            align: Alignment in bytes.
            offset: Base offset in bytes (even, < align).
            group_id: Group the reservation belongs to.
            process: Opaque owner passed through to the container.
            can_together: Whether luma and chroma may share one area.

        Returns:
            ReservationResult describing how many buffers were reserved.
        """
        ...

    def reserve_blocks(
        self,
        n: int,
        fmt: PixelFormat,
        width: int,
        height: int,
        align: int,
        offset: int,
        group_id: int,
        process: Any,
    ) -> ReservationResult:
        """Reserve areas for n single-plane buffers of one format."""
        ...

    def unreserve(self, group_id: int, process: Any) -> None:
        """Release every area reserved for a group."""
        ...
