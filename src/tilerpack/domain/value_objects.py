"""Domain value objects (immutable data structures).

Value objects are immutable data structures that represent concepts
from the domain model. They have no identity - two instances with
the same values are considered equal.
"""

from dataclasses import dataclass
from enum import Enum

from tilerpack.domain.errors import ConfigurationError, PackingValidationError


class PixelFormat(Enum):
    """Container view a buffer is mapped through.

    Only the bit depth varies between formats; the reservation drivers
    never branch on the format beyond validating it.
    """

    BIT8 = 8
    BIT16 = 16
    BIT32 = 32


@dataclass(frozen=True)
class SlotGeometry:
    """Static per-format slot geometry.

    Attributes:
        slot_width: Slot width in pixels.
        slot_height: Slot height in pixel rows.
        bytes_per_pixel: Bytes per pixel for this format.
    """

    slot_width: int
    slot_height: int
    bytes_per_pixel: int

    @property
    def bytes_per_slot_row(self) -> int:
        """Bytes one slot contributes to a container row."""
        return self.slot_width * self.bytes_per_pixel


@dataclass(frozen=True)
class BlockGeometry:
    """A pixel request translated into slot units.

    Attributes:
        width: Block width in slots.
        height: Block height in slots.
        band: Row-wrap period in slots for this format.
        alignment: Required alignment in slots.
        offset: Base offset in slots (0 <= offset < alignment).
    """

    width: int
    height: int
    band: int
    alignment: int
    offset: int


@dataclass(frozen=True)
class BandConfig:
    """Process-wide band constants, computed once before any reservation.

    Attributes:
        band8: Repeat period in slots of one page for the 8-bit (luma) view.
        band16: Repeat period in slots of one page for the 16-bit (chroma) view.
        container_width: Container width in slots.
        container_height: Container height in slots.
        page_size: Bytes in one addressable container row.

    Example:
        >>> bands = BandConfig.from_geometry(
        ...     page_size=4096,
        ...     container_width=256,
        ...     container_height=128,
        ...     luma=SlotGeometry(64, 64, 1),
        ...     chroma=SlotGeometry(32, 64, 2),
        ... )
        >>> bands.band8, bands.band16
        (64, 64)
    """

    band8: int
    band16: int
    container_width: int
    container_height: int
    page_size: int

    def __post_init__(self) -> None:
        """Validate band invariants."""
        if self.band8 <= 0 or self.band16 <= 0:
            raise ConfigurationError(
                f"bands must be > 0, got band8={self.band8} band16={self.band16}"
            )
        if self.container_width <= 0 or self.container_height <= 0:
            raise ConfigurationError(
                f"container must be non-empty, got "
                f"{self.container_width}x{self.container_height}"
            )

    @classmethod
    def from_geometry(
        cls,
        page_size: int,
        container_width: int,
        container_height: int,
        luma: SlotGeometry,
        chroma: SlotGeometry,
    ) -> "BandConfig":
        """Derive the luma and chroma bands from the per-format slot geometry."""
        return cls(
            band8=page_size // luma.slot_width,
            band16=page_size // chroma.slot_width // chroma.bytes_per_pixel,
            container_width=container_width,
            container_height=container_height,
            page_size=page_size,
        )

    @property
    def slot_area(self) -> int:
        """Total number of slots in the container."""
        return self.container_width * self.container_height


@dataclass(frozen=True)
class RowFit:
    """Best side-by-side fit of identical blocks in one row.

    Attributes:
        count: Number of blocks achieving the best efficiency (0 if none fit).
        area: Row-stride length in slots the blocks occupy.
        efficiency: count * width * 1024 // area.
    """

    count: int
    area: int
    efficiency: int


@dataclass(frozen=True)
class Packing:
    """Candidate co-located luma/chroma layout inside one shared region.

    Attributes:
        count: Number of buffers packed.
        area: Region width in slots.
        pairs: (luma_offset, chroma_offset) per buffer, in placement order.
    """

    count: int
    area: int
    pairs: tuple[tuple[int, int], ...] = ()

    def __post_init__(self) -> None:
        """Validate packing invariants."""
        if self.count != len(self.pairs):
            raise PackingValidationError(
                f"count ({self.count}) must equal number of pairs ({len(self.pairs)})"
            )
        if self.area < 0:
            raise PackingValidationError(f"area must be >= 0, got {self.area}")


EMPTY_PACKING = Packing(count=0, area=0)


@dataclass(frozen=True)
class PackingPattern:
    """Precomputed co-packing for one specific request shape."""

    count: int
    offset: int
    width: int
    alignment: int
    area: int
    pairs: tuple[tuple[int, int], ...]


class ReservationOutcome(Enum):
    """How a reservation call ended."""

    RESERVED = "reserved"
    PARTIAL = "partial"
    REJECTED = "rejected"
    DECLINED = "declined"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ReservationResult:
    """Outcome of one reservation call.

    Attributes:
        requested: Number of buffers asked for.
        reserved: Number of buffers committed across all rounds.
        outcome: Why the call stopped.
    """

    requested: int
    reserved: int
    outcome: ReservationOutcome

    @property
    def shortfall(self) -> int:
        """Buffers still outstanding."""
        return self.requested - self.reserved

    @classmethod
    def settled(cls, requested: int, reserved: int) -> "ReservationResult":
        """Result for a request that ran its rounds to completion or exhaustion."""
        outcome = (
            ReservationOutcome.RESERVED
            if reserved >= requested
            else ReservationOutcome.PARTIAL
        )
        return cls(requested=requested, reserved=reserved, outcome=outcome)
