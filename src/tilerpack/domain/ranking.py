"""Ranking of NV12 packing strategies.

Scores only make sense relative to each other: the separate and the
co-located candidate of one reservation round are ranked with the same
``n_still_needed`` and the higher score wins.
"""

import math

# Keeps the coarse term positive for any realistic area.
RANK_BASE = 0x10000000
ROUND_AREA_WEIGHT = 32
DENSITY_SCALE = 1024


def rank(n_achieved: int, width: int, area: int, n_still_needed: int) -> int | float:
    """Score a candidate packing.

    Ranks first by the total area all rounds would need to satisfy the
    request, then by how densely luma and chroma fill the area.

    Args:
        n_achieved: Buffers the candidate packs in one round.
        width: Luma width in slots.
        area: Area the candidate occupies.
        n_still_needed: Buffers the request still needs.

    Returns:
        Integer score, or the float ``-inf`` when the candidate packs
        nothing; ``-inf`` is the only float returned.
    """
    if n_achieved <= 0 or area <= 0:
        return -math.inf

    rounds = -(-n_still_needed // n_achieved)
    coarse = RANK_BASE - rounds * area * ROUND_AREA_WEIGHT
    fine = DENSITY_SCALE * n_achieved * ((width * 3 + 1) >> 1) // area
    return coarse + fine
