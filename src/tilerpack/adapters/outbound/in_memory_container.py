"""In-memory tiled container.

Implements TilerOpsPort over a plain occupancy grid so the reservation
drivers can run without hardware. Areas are placed first-fit, scanning
rows top to bottom and band-aligned columns left to right. A slot is a
slot for every format; formats only change how pixels map onto slots.
"""

from dataclasses import dataclass, field
from typing import Any

from tilerpack.adapters.config.settings import TilerSettings
from tilerpack.domain.errors import GeometryError, RegionAllocationError
from tilerpack.domain.row_packer import align as align_up
from tilerpack.domain.value_objects import BlockGeometry, PixelFormat, SlotGeometry

# OMAP4 TILER slot geometry
DEFAULT_GEOMETRY: dict[PixelFormat, SlotGeometry] = {
    PixelFormat.BIT8: SlotGeometry(slot_width=64, slot_height=64, bytes_per_pixel=1),
    PixelFormat.BIT16: SlotGeometry(slot_width=32, slot_height=64, bytes_per_pixel=2),
    PixelFormat.BIT32: SlotGeometry(slot_width=32, slot_height=32, bytes_per_pixel=4),
}


@dataclass
class Region:
    """Rectangle of slots reserved in the container.

    Attributes:
        x: Left column in slots.
        y: Top row in slots.
        width: Width in slots (a multiple of the band it was laid out with).
        height: Height in slots.
        count: Buffers the region was reserved for.
        fmt: View the region was reserved for, None for shared NV12 areas.
    """

    x: int
    y: int
    width: int
    height: int
    count: int
    fmt: PixelFormat | None = None


@dataclass
class InMemoryGroup:
    """Bookkeeping of one (process, group_id) pair."""

    group_id: int
    process: Any
    reserved: list[Region] = field(default_factory=list)
    refs: int = 0


class InMemoryContainer:
    """Occupancy-grid implementation of the container primitives.

    Example:
        >>> container = InMemoryContainer(width=256, height=128)
        >>> container.free_slots()
        32768
        >>> group = container.group_context("pid-1", 7)
        >>> container.lay_2d(PixelFormat.BIT8, 4, 4, 2, 64, 4, 0, group, group.reserved)
        4
        >>> container.free_slots()
        32640
    """

    def __init__(
        self,
        width: int = 256,
        height: int = 128,
        page_size: int = 4096,
        geometry: dict[PixelFormat, SlotGeometry] | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.page_size = page_size
        self._geometry = dict(geometry or DEFAULT_GEOMETRY)
        self._rows = [bytearray(width) for _ in range(height)]
        self._groups: dict[tuple[Any, int], InMemoryGroup] = {}

    @classmethod
    def from_settings(cls, settings: TilerSettings) -> "InMemoryContainer":
        """Build a container sized by the given settings."""
        return cls(
            width=settings.container_width,
            height=settings.container_height,
            page_size=settings.page_size,
        )

    # Geometry

    def geometry(self, fmt: PixelFormat) -> SlotGeometry:
        return self._geometry[fmt]

    def analyze(
        self,
        fmt: PixelFormat,
        width: int,
        height: int,
        align: int,
        offset: int,
    ) -> BlockGeometry:
        """Translate a pixel request into slot units.

        Raises:
            GeometryError: If the buffer does not fit in the container.
        """
        slot = self._geometry[fmt]
        bpt = slot.bytes_per_slot_row
        w = -(-(offset % bpt + width * slot.bytes_per_pixel) // bpt)
        h = -(-height // slot.slot_height)
        a = max(-(-align // bpt), 1)

        if w > self.width or h > self.height:
            raise GeometryError(
                f"{width}x{height} {fmt.name} needs {w}x{h} slots, "
                f"container is {self.width}x{self.height}"
            )

        return BlockGeometry(
            width=w,
            height=h,
            band=self.page_size // bpt,
            alignment=a,
            offset=offset // bpt,
        )

    # Groups

    def group_context(self, process: Any, group_id: int) -> InMemoryGroup:
        key = (process, group_id)
        group = self._groups.get(key)
        if group is None:
            group = self._groups[key] = InMemoryGroup(group_id=group_id, process=process)
        group.refs += 1
        return group

    def release_group(self, group: InMemoryGroup) -> None:
        group.refs -= 1
        if group.refs <= 0 and not group.reserved:
            self._groups.pop((group.process, group.group_id), None)

    def add_to_group(self, pending: list[Region], group: InMemoryGroup) -> None:
        group.reserved.extend(pending)
        pending.clear()

    # Areas

    def lay_2d(
        self,
        fmt: PixelFormat,
        count: int,
        w: int,
        h: int,
        band: int,
        align: int,
        offset: int,
        group: InMemoryGroup,
        target: list[Region],
    ) -> int:
        """Reserve one area for count blocks laid side by side."""
        if count <= 0 or w <= 0 or h <= 0:
            raise RegionAllocationError(f"cannot lay out {count} blocks of {w}x{h}")

        band = max(band, 1)
        pitch = align_up(w, max(align, 1))
        span = align_up(offset + (count - 1) * pitch + w, band)
        target.append(self._reserve(span, h, band, count, fmt))
        return count

    def lay_nv12(
        self,
        count: int,
        area: int,
        w: int,
        h: int,
        group: InMemoryGroup,
        pairs: tuple[tuple[int, int], ...],
    ) -> int:
        """Reserve one shared area for co-located luma/chroma pairs."""
        if count <= 0 or area <= 0 or len(pairs) < count:
            raise RegionAllocationError(
                f"cannot lay out {count} NV12 buffers in area {area} with {len(pairs)} pairs"
            )

        group.reserved.append(self._reserve(area, h, area, count, None))
        return count

    def release(self, regions: list[Region]) -> None:
        for region in regions:
            for row in self._rows[region.y : region.y + region.height]:
                row[region.x : region.x + region.width] = bytes(region.width)
        regions.clear()

    def free_slots(self) -> int:
        """Number of unoccupied slots."""
        return sum(row.count(0) for row in self._rows)

    def reserved_for(self, process: Any, group_id: int) -> list[Region]:
        """Regions currently reserved for a group (empty if it has none)."""
        group = self._groups.get((process, group_id))
        return list(group.reserved) if group else []

    def _reserve(
        self, span: int, h: int, step: int, count: int, fmt: PixelFormat | None
    ) -> Region:
        if span > self.width or h > self.height:
            raise RegionAllocationError(
                f"area {span}x{h} exceeds container {self.width}x{self.height}"
            )

        for y in range(self.height - h + 1):
            for x in range(0, self.width - span + 1, step):
                if self._is_free(x, y, span, h):
                    for row in self._rows[y : y + h]:
                        row[x : x + span] = b"\x01" * span
                    return Region(x=x, y=y, width=span, height=h, count=count, fmt=fmt)

        raise RegionAllocationError(f"no free {span}x{h} area")

    def _is_free(self, x: int, y: int, span: int, h: int) -> bool:
        return not any(any(row[x : x + span]) for row in self._rows[y : y + h])
