# MIT License (see LICENSE)
"""
Consumers of world snapshots.

    - RendererAdapter: drawing contract (frame, particles, wires, tree nodes).
    - DebugRenderer: one text line per particle and wire.
    - NullRenderer: draws nothing; for timing runs.
    - BufferedRenderer: keeps each frame as a dict.

None of these import a graphics library.

Typical usage:
    from electron_sim.renderer import DebugRenderer

    DebugRenderer().render_world(world.snapshot())
"""
from .adapter import (
    RendererAdapter,
    DebugRenderer,
    NullRenderer,
    BufferedRenderer,
)

__all__ = [
    "RendererAdapter",
    "DebugRenderer",
    "NullRenderer",
    "BufferedRenderer",
]
