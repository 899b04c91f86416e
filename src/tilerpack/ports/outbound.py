"""Outbound port interfaces (driven adapters).

These ports define the contracts for the packing core to interact with
the container that actually owns the slot grid. Implementations are
provided by outbound adapters (hardware driver bindings, in-memory
simulation, etc.).

All interfaces use Protocol (PEP 544) for structural typing, allowing
implicit implementation without inheritance.
"""

from typing import Any, Protocol

from tilerpack.domain.value_objects import BlockGeometry, PixelFormat, SlotGeometry


class GroupContext(Protocol):
    """Per-group bookkeeping handle owned by the container.

    Attributes:
        reserved: Regions reserved for the group and not yet used.
    """

    reserved: list[Any]


class TilerOpsPort(Protocol):
    """Port for the container's geometry and allocation primitives.

    Supplied once when the reservation service is built. Every commit
    primitive is blocking and atomic from the caller's point of view:
    it either commits and returns the number of buffers laid out, or
    raises without changing the container.

    Attributes:
        width: Container width in slots.
        height: Container height in slots.
        page_size: Bytes in one addressable container row.
    """

    width: int
    height: int
    page_size: int

    def geometry(self, fmt: PixelFormat) -> SlotGeometry:
        """Return the static slot geometry of a format."""
        ...

    def analyze(
        self,
        fmt: PixelFormat,
        width: int,
        height: int,
        align: int,
        offset: int,
    ) -> BlockGeometry:
        """Translate a pixel request into slot geometry.

        Args:
            fmt: Pixel format of the buffer.
            width: Buffer width in pixels.
            height: Buffer height in pixels.
            align: Required alignment in bytes.
            offset: Base offset in bytes (< align).

        Returns:
            BlockGeometry in slot units.

        Raises:
            GeometryError: If the request cannot be mapped into the container.
        """
        ...

    def group_context(self, process: Any, group_id: int) -> GroupContext | None:
        """Resolve (or create) the bookkeeping of a group.

        Returns:
            The group handle, or None if it cannot be obtained.
        """
        ...

    def lay_2d(
        self,
        fmt: PixelFormat,
        count: int,
        w: int,
        h: int,
        band: int,
        align: int,
        offset: int,
        group: GroupContext,
        target: list[Any],
    ) -> int:
        """Reserve one area holding count blocks side by side.

        Reserved regions are appended to target.

        Returns:
            Number of blocks laid out.

        Raises:
            RegionAllocationError: If no suitable area is free.
        """
        ...

    def lay_nv12(
        self,
        count: int,
        area: int,
        w: int,
        h: int,
        group: GroupContext,
        pairs: tuple[tuple[int, int], ...],
    ) -> int:
        """Reserve one shared area holding co-located luma/chroma pairs.

        Regions are added to the group's reserved list directly.

        Returns:
            Number of buffers laid out.

        Raises:
            RegionAllocationError: If no suitable area is free.
        """
        ...

    def add_to_group(self, pending: list[Any], group: GroupContext) -> None:
        """Move pending regions into the group's reserved list."""
        ...

    def release(self, regions: list[Any]) -> None:
        """Free regions and empty the list."""
        ...

    def release_group(self, group: GroupContext) -> None:
        """Hand back a group handle obtained from group_context."""
        ...
