"""tilerpack: packing decisions for a tiled 2D memory container.

Decides how batches of same-sized pixel buffers are laid out in a
fixed-width slot grid, including co-location of NV12 luma and chroma
planes, and drives the reservation rounds against an injected container.

Architecture: Hexagonal (Ports & Adapters)
- Domain core: Pure packing logic (no external dependencies)
- Ports: Protocol-based interfaces
- Adapters: Settings, structured logging, in-memory container
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
