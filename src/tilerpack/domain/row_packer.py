"""Row packing of identical blocks.

A container row wraps every ``band`` slots, so blocks laid side by side
can only share a region while the stride of the region (the row length
rounded up to the band) stays the same for each of them. These functions
are pure scoring functions over that geometry; they never touch the
container.
"""

from tilerpack.domain.value_objects import BandConfig, RowFit

# Efficiency is reported in 1/1024ths of the area.
EFFICIENCY_SCALE = 1024

# Separate luma + chroma placement, expressed in luma-equivalent area units.
SEPARATE_AREA_FACTOR = 3


def align(value: int, alignment: int) -> int:
    """Round value up to the next multiple of alignment.

    Negative values round toward the lower multiple, matching bitmask
    alignment for power-of-two alignments.
    """
    return (value + alignment - 1) // alignment * alignment


def best_fit(
    o: int,
    w: int,
    e: int,
    band: int,
    n_max: int,
    container_width: int,
) -> RowFit:
    """Find the most efficient number of blocks to pack next to each other.

    Blocks start at ``o, o + e, o + 2e, ...``. A block is admitted while it
    fits in the container and the row stride seen from its start matches
    the stride of the first block. Efficiency is not monotonic in the
    count, so the best count is the first one reaching the best efficiency.

    Args:
        o: Offset of the first block in slots.
        w: Block width in slots (> 0).
        e: Effective pitch between block origins (>= w).
        band: Row-wrap period in slots.
        n_max: Upper bound on the count.
        container_width: Container width in slots.

    Returns:
        RowFit with the best count, its area and efficiency, or
        ``RowFit(0, 0, 0)`` if not even one block fits.
    """
    best = RowFit(count=0, area=0, efficiency=0)
    stride = align(o + w, band)
    area = stride
    m = 0

    while (
        m < n_max
        and o + m * e + w <= container_width
        and stride == align(area - o - m * e, band)
    ):
        m += 1
        efficiency = m * w * EFFICIENCY_SCALE // area
        if efficiency > best.efficiency:
            best = RowFit(count=m, area=area, efficiency=efficiency)
        area = align(o + m * e + w, band)

    return best


def pack_separate(o: int, w: int, a: int, n: int, bands: BandConfig) -> tuple[int, int]:
    """Pack luma and chroma planes into two independent regions.

    Args:
        o: Luma offset in slots (even).
        w: Luma width in slots.
        a: Alignment in slots (>= 2).
        n: Buffers still needed.
        bands: Process-wide band constants.

    Returns:
        Tuple of (buffers packed, area in luma-equivalent units).
    """
    eff_w = align(w, a)
    luma = best_fit(o, w, eff_w, bands.band8, n, bands.container_width)
    chroma = best_fit(
        o // 2, (w + 1) // 2, eff_w // 2, bands.band16, n, bands.container_width
    )
    return (
        min(luma.count, chroma.count),
        SEPARATE_AREA_FACTOR * (luma.area + chroma.area),
    )
