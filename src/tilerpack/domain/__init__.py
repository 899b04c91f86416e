"""Domain layer for tiled-container packing decisions.

This package contains pure packing logic with zero external dependencies.
All domain code uses only Python stdlib (typing, dataclasses, enum) and
internal tilerpack.domain imports.

Modules:
    value_objects: Immutable value objects (BandConfig, RowFit, Packing, ReservationResult)
    row_packer: Side-by-side row packing and separate NV12 plane packing
    copacking: Co-located NV12 packing patterns and the precomputed table
    ranking: Strategy ranking
    errors: Domain exception hierarchy
"""
