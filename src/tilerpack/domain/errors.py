"""Domain exception hierarchy.

All domain-level errors inherit from TilerError.
This allows clean exception handling at adapter boundaries.
"""


class TilerError(Exception):
    """Base exception for all domain errors."""


class InvalidRequestError(TilerError):
    """Reservation request failed validation (zero size, bad offset, capacity overflow)."""


class GeometryError(TilerError):
    """Pixel request could not be translated into slot geometry."""


class RegionAllocationError(TilerError):
    """Container could not commit the requested area (no free region, bad layout)."""


class ConfigurationError(TilerError):
    """Band or container configuration is invalid (zero band, non-positive container size)."""


class PackingValidationError(TilerError):
    """Packing value object validation failed (pair count mismatch, negative area)."""
