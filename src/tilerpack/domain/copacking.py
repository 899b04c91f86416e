"""Co-located packing of NV12 luma and chroma planes.

A (w * h) 8-bit area is twice as wide as the (w/2 * h/2) 16-bit area of
its chroma plane, so pairs of such blocks can share one region. All
patterns pack into a region of ``band8`` slots, which keeps every block
on the same stride.

Patterns are named by the layout they produce, capital letters for luma
blocks and lower case for the matching chroma blocks:

    progressive  AAAAaaaaBBbbCc
    regressive   cCbbBBaaaaAAAA
    simple       aAbcBdeCfgDhEFGH
    butterfly    AAbbaaBB
    large        aA or Aa (single buffer)
"""

from collections.abc import Callable

from tilerpack.domain.row_packer import align
from tilerpack.domain.value_objects import (
    BandConfig,
    Packing,
    PackingPattern,
)

Pattern = Callable[[int, int, int, int, BandConfig], Packing]

# Sorted by increasing area, then by decreasing count.
PACKING_TABLE: tuple[PackingPattern, ...] = (
    PackingPattern(
        count=9,
        offset=2,
        width=4,
        alignment=4,
        area=64,
        pairs=(
            (2, 33), (6, 35), (10, 37), (14, 39), (18, 41),
            (46, 23), (50, 25), (54, 27), (58, 29),
        ),
    ),
    PackingPattern(
        count=3,
        offset=0,
        width=12,
        alignment=4,
        area=64,
        pairs=((0, 32), (12, 38), (48, 24)),
    ),
)


def chroma_width(w: int) -> int:
    """Width of the half-resolution chroma plane for a luma width."""
    return (w + 1) >> 1


def reflect(packing: Packing, w: int) -> Packing:
    """Mirror every block of a packing about the end of its region."""
    w1 = chroma_width(w)
    pairs = tuple(
        (packing.area - luma - w, packing.area - chroma - w1)
        for luma, chroma in packing.pairs
    )
    return Packing(count=packing.count, area=packing.area, pairs=pairs)


def progressive(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Pack blocks left to right, chroma filling the upper half of each window."""
    area = bands.band8
    x = o
    pairs: list[tuple[int, int]] = []

    while x + w < area and len(pairs) < n:
        # this window's upper bound is where its chroma blocks start
        lower = upper = (area + x) >> 1

        while x + w <= upper and len(pairs) < n:
            pairs.append((x, lower))
            lower = (area + x + w + 1) >> 1
            x = align(x + w - o, a) + o

        x = align(lower - o, a) + o

    return Packing(count=len(pairs), area=area, pairs=tuple(pairs))


def regressive(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Progressive packing mirrored so blocks are laid out right to left."""
    mirrored_offset = (a - (o + w) % a) % a
    return reflect(progressive(mirrored_offset, w, a, n, bands), w)


def simple(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Interleave each chroma block at half the offset of its luma block.

    Only valid when a block does not wrap its alignment, the chroma of an
    even block lies entirely before its luma block and the chroma of an odd
    block, half an alignment further, lies either before it or after its end.
    """
    area = bands.band8
    end = (o + w) % a
    half_offset = (o >> 1) % a
    half_end = ((o + w + 1) >> 1) % a
    # x >> 1 advances by a / 2 per block
    second_offset = half_offset + (a >> 1)
    second_end = half_end + (a >> 1)
    pairs: list[tuple[int, int]] = []

    if (
        w < a
        and o < end
        and half_end <= o
        and (second_end <= o or second_offset >= end)
    ):
        x = o
        while x + w <= area and len(pairs) < n:
            pairs.append((x, x >> 1))
            x += a

    return Packing(count=len(pairs), area=area, pairs=tuple(pairs))


def butterfly(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Alternate blocks from the low end and the mirrored high end of the region."""
    area = bands.band8
    e = align(w, a)
    last_end = area - (a - (o + w) % a) % a
    rows = (min(last_end - 2 * o, 2 * last_end - o - area) // 3 - w) // e + 1
    pairs: list[tuple[int, int]] = []

    for i in range(max(rows, 0)):
        if len(pairs) >= n:
            break
        low = o + i * e
        pairs.append((low, (low + area) >> 1))
        if len(pairs) < n:
            high = last_end - i * e - w
            pairs.append((high, high >> 1))

    return Packing(count=len(pairs), area=area, pairs=tuple(pairs))


def large_buffer(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Find a spot for one large buffer with its chroma just before or after it."""
    w1 = chroma_width(w)
    area = align(o + w, bands.band8)
    d = 0

    while n > 0 and d + o + w <= area:
        luma = o + d
        chroma = (luma % bands.band8) >> 1
        if chroma + w1 <= luma:
            return Packing(count=1, area=area, pairs=((luma, chroma),))

        chroma += align(luma + w - chroma, bands.band16)
        if chroma + w1 <= area:
            return Packing(count=1, area=area, pairs=((luma, chroma),))
        d += a

    return Packing(count=0, area=area)


# Evaluated in this order after progressive; a later pattern must pack
# strictly more buffers to replace an earlier one.
SEARCH_PATTERNS: tuple[Pattern, ...] = (regressive, simple, butterfly)


def _match_table(o: int, w: int, a: int, n: int, best: Packing) -> Packing:
    for entry in PACKING_TABLE:
        if entry.count < best.count:
            break

        # the request must fit once shifted onto the entry's offset
        shift = align(entry.offset - o, a)
        if entry.alignment >= a and o + w + shift <= entry.offset + entry.width:
            count = min(entry.count, n)
            return Packing(count=count, area=entry.area, pairs=entry.pairs[:count])

    return best


def pack_together(o: int, w: int, a: int, n: int, bands: BandConfig) -> Packing:
    """Choose the best co-located packing for up to n buffers.

    Args:
        o: Luma offset in slots (even).
        w: Luma width in slots (> 0).
        a: Alignment in slots (>= 2).
        n: Buffers still needed.
        bands: Process-wide band constants.

    Returns:
        The winning Packing; its count is 0 if the planes cannot share a region.
    """
    best = progressive(o, w, a, n, bands)

    for pattern in SEARCH_PATTERNS:
        if best.count >= n:
            break
        candidate = pattern(o, w, a, n, bands)
        if candidate.count > best.count:
            best = candidate

    best = _match_table(o, w, a, n, best)

    if not best.count:
        best = large_buffer(o, w, a, n, bands)

    return best
