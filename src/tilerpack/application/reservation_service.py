"""Reservation drivers for the tiled container.

Runs rounds of "pick a layout, commit it, roll back on partial failure"
against the injected container until a request is satisfied or a round
commits nothing. Buffers reserved in earlier rounds are kept when a
later round fails.

Thread Safety:
- Not thread-safe. Callers serialize reservation and release per group.
"""

from typing import Any

import structlog

from tilerpack.domain.copacking import chroma_width, pack_together
from tilerpack.domain.errors import GeometryError, InvalidRequestError, RegionAllocationError
from tilerpack.domain.ranking import rank
from tilerpack.domain.row_packer import align as align_up
from tilerpack.domain.row_packer import best_fit, pack_separate
from tilerpack.domain.value_objects import (
    EMPTY_PACKING,
    BandConfig,
    BlockGeometry,
    Packing,
    PixelFormat,
    ReservationOutcome,
    ReservationResult,
)
from tilerpack.ports.outbound import GroupContext, TilerOpsPort

logger = structlog.get_logger(__name__)


class ReservationService:
    """Reserves container areas for batches of same-sized buffers.

    The band constants are derived from the container geometry once, when
    the service is built, and stay fixed for its lifetime.

    Example:
        >>> service = ReservationService(InMemoryContainer())
        >>> result = service.reserve_nv12(
        ...     n=9, width=256, height=64, align=256, offset=128,
        ...     group_id=1, process="pid-1", can_together=True,
        ... )
        >>> result.outcome
        <ReservationOutcome.RESERVED: 'reserved'>
    """

    def __init__(self, ops: TilerOpsPort, co_packing_enabled: bool = True) -> None:
        """Initialize the service with the container's primitives.

        Args:
            ops: Container geometry and allocation primitives.
            co_packing_enabled: Whether NV12 planes may ever share one area;
                when False, callers opting into co-packing are overridden.

        Raises:
            ConfigurationError: If the container yields empty bands.
        """
        self._ops = ops
        self._co_packing_enabled = co_packing_enabled
        self._bands = BandConfig.from_geometry(
            page_size=ops.page_size,
            container_width=ops.width,
            container_height=ops.height,
            luma=ops.geometry(PixelFormat.BIT8),
            chroma=ops.geometry(PixelFormat.BIT16),
        )
        logger.debug(
            "reservation_service_initialized",
            band8=self._bands.band8,
            band16=self._bands.band16,
        )

    @property
    def bands(self) -> BandConfig:
        """Band constants used for every packing decision."""
        return self._bands

    # ------------------------------------------------------------------
    # NV12
    # ------------------------------------------------------------------

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

        Each round compares packing the planes into separate areas against
        co-locating them in one area and commits the better ranked layout.
        If the separate commit fails, the co-located layout is tried in
        the same round.

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
            ReservationResult with the number of buffers reserved.
        """
        try:
            self._validate_nv12(n, width, height, align, offset)
        except InvalidRequestError as e:
            logger.info("reservation_rejected", kind="nv12", reason=str(e))
            return ReservationResult(n, 0, ReservationOutcome.REJECTED)

        # alignment is at least the largest slot width
        bands = self._bands
        align = max(bands.page_size // min(bands.band8, bands.band16), align)

        try:
            geom = self._ops.analyze(PixelFormat.BIT8, width, height, align, offset)
        except GeometryError as e:
            logger.info("reservation_aborted", kind="nv12", reason=str(e))
            return ReservationResult(n, 0, ReservationOutcome.ABORTED)

        group = self._ops.group_context(process, group_id)
        if group is None:
            logger.info("reservation_aborted", kind="nv12", reason="no group context")
            return ReservationResult(n, 0, ReservationOutcome.ABORTED)

        try:
            reserved = self._nv12_rounds(
                n, geom, group, can_together and self._co_packing_enabled
            )
        finally:
            self._ops.release_group(group)

        result = ReservationResult.settled(n, reserved)
        logger.info(
            "nv12_reservation_done",
            group_id=group_id,
            requested=n,
            reserved=reserved,
            shortfall=result.shortfall,
        )
        return result

    def _validate_nv12(
        self, n: int, width: int, height: int, align: int, offset: int
    ) -> None:
        if not width or not height or not n:
            raise InvalidRequestError(
                f"width, height and n must be > 0, got {width}x{height} n={n}"
            )
        if offset >= align:
            raise InvalidRequestError(f"offset ({offset}) must be < align ({align})")
        if offset & 1:
            raise InvalidRequestError(f"offset must be even, got {offset}")
        if align >= self._bands.page_size:
            raise InvalidRequestError(
                f"align ({align}) must be < page size ({self._bands.page_size})"
            )
        if n > self._bands.slot_area // 2:
            raise InvalidRequestError(
                f"n ({n}) exceeds half the container ({self._bands.slot_area // 2})"
            )

    def _nv12_rounds(
        self, n: int, geom: BlockGeometry, group: GroupContext, can_together: bool
    ) -> int:
        o, w, a = geom.offset, geom.width, geom.alignment
        reserved = 0

        while reserved < n:
            remaining = n - reserved
            n_separate, area_separate = pack_separate(o, w, a, remaining, self._bands)
            together = (
                pack_together(o, w, a, remaining, self._bands)
                if can_together
                else EMPTY_PACKING
            )

            committed = 0
            if n_separate and (
                not can_together
                or rank(n_separate, w, area_separate, remaining)
                > rank(together.count, w, together.area, remaining)
            ):
                committed = self._commit_separate(n_separate, geom, group)

            # separate packing failed, still try to pack together
            if not committed and together.count:
                committed = self._commit_together(together, geom, group)

            logger.debug(
                "nv12_round",
                remaining=remaining,
                n_separate=n_separate,
                area_separate=area_separate,
                n_together=together.count,
                area_together=together.area,
                committed=committed,
            )
            if not committed:
                break
            reserved += committed

        return reserved

    def _commit_separate(self, count: int, geom: BlockGeometry, group: GroupContext) -> int:
        # Chroma is only reserved once luma succeeded: it is matched to an
        # already reserved luma area, and an unreserved luma area is not
        # guaranteed to match the offset of a lone chroma area.
        pending: list[Any] = []
        try:
            luma = self._ops.lay_2d(
                PixelFormat.BIT8, count, geom.width, geom.height,
                geom.band, geom.alignment, geom.offset, group, pending,
            )
            chroma = self._ops.lay_2d(
                PixelFormat.BIT16, count, chroma_width(geom.width), geom.height,
                geom.band // 2, geom.alignment // 2, geom.offset // 2, group, pending,
            )
        except RegionAllocationError as e:
            logger.info("nv12_separate_rollback", reason=str(e))
            self._ops.release(pending)
            return 0

        if luma != chroma:
            logger.info("nv12_separate_rollback", luma=luma, chroma=chroma)
            self._ops.release(pending)
            return 0

        self._ops.add_to_group(pending, group)
        return luma

    def _commit_together(self, packing: Packing, geom: BlockGeometry, group: GroupContext) -> int:
        try:
            return self._ops.lay_nv12(
                packing.count, packing.area, geom.width, geom.height, group, packing.pairs
            )
        except RegionAllocationError as e:
            logger.info("nv12_together_failed", count=packing.count, reason=str(e))
            return 0

    # ------------------------------------------------------------------
    # Single plane
    # ------------------------------------------------------------------

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
        """Reserve areas for n single-plane buffers.

        Only narrow buffers go through here; buffers at least half a page
        wide are left to the container's default allocation. Each round
        packs as many buffers as fit in one row and shrinks the batch
        until the container accepts it.

        Args:
            n: Number of buffers.
            fmt: Pixel format of the buffers.
            width: Buffer width in pixels.
            height: Buffer height in pixels.
            align: Alignment in bytes.
            offset: Base offset in bytes (< align).
            group_id: Group the reservation belongs to.
            process: Opaque owner passed through to the container.

        Returns:
            ReservationResult with the number of buffers reserved.
        """
        try:
            self._validate_blocks(n, fmt, width, height, align, offset)
        except InvalidRequestError as e:
            logger.info("reservation_rejected", kind="2d", reason=str(e))
            return ReservationResult(n, 0, ReservationOutcome.REJECTED)

        slot = self._ops.geometry(fmt)
        if width * slot.bytes_per_pixel * 2 >= self._bands.page_size:
            logger.debug("reservation_declined", kind="2d", width=width, fmt=fmt.name)
            return ReservationResult(n, 0, ReservationOutcome.DECLINED)

        try:
            geom = self._ops.analyze(fmt, width, height, align, offset)
        except GeometryError as e:
            logger.info("reservation_aborted", kind="2d", reason=str(e))
            return ReservationResult(n, 0, ReservationOutcome.ABORTED)

        group = self._ops.group_context(process, group_id)
        if group is None:
            logger.info("reservation_aborted", kind="2d", reason="no group context")
            return ReservationResult(n, 0, ReservationOutcome.ABORTED)

        try:
            reserved = self._block_rounds(n, fmt, geom, group)
        finally:
            self._ops.release_group(group)

        result = ReservationResult.settled(n, reserved)
        logger.info(
            "block_reservation_done",
            group_id=group_id,
            fmt=fmt.name,
            requested=n,
            reserved=reserved,
            shortfall=result.shortfall,
        )
        return result

    def _validate_blocks(
        self, n: int, fmt: PixelFormat, width: int, height: int, align: int, offset: int
    ) -> None:
        if not width or not height or not n:
            raise InvalidRequestError(
                f"width, height and n must be > 0, got {width}x{height} n={n}"
            )
        if align > self._bands.page_size:
            raise InvalidRequestError(
                f"align ({align}) must be <= page size ({self._bands.page_size})"
            )
        if offset >= align:
            raise InvalidRequestError(f"offset ({offset}) must be < align ({align})")
        if not isinstance(fmt, PixelFormat):
            raise InvalidRequestError(f"unsupported format: {fmt!r}")

    def _block_rounds(
        self, n: int, fmt: PixelFormat, geom: BlockGeometry, group: GroupContext
    ) -> int:
        e = align_up(geom.width, geom.alignment)
        reserved = 0

        while reserved < n:
            n_try = min(n - reserved, self._bands.container_width)
            n_try = best_fit(
                geom.offset, geom.width, e, geom.band, n_try, self._bands.container_width
            ).count

            committed = 0
            while n_try > 1:
                try:
                    committed = self._ops.lay_2d(
                        fmt, n_try, geom.width, geom.height, geom.band,
                        geom.alignment, geom.offset, group, group.reserved,
                    )
                    break
                except RegionAllocationError:
                    logger.debug("block_batch_shrunk", n_try=n_try)
                    n_try -= 1

            if not committed:
                break
            reserved += committed

        return reserved

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def unreserve(self, group_id: int, process: Any) -> None:
        """Release every area reserved for a group.

        A group without a context has nothing reserved; this is a no-op.
        """
        group = self._ops.group_context(process, group_id)
        if group is None:
            return

        try:
            self._ops.release(group.reserved)
        finally:
            self._ops.release_group(group)
        logger.info("group_unreserved", group_id=group_id)
