# MIT License (see LICENSE)
"""
Renderer adapters for simulation visualization.

Renderers consume WorldSnapshot objects, never the live World, so a drawing
thread can hold a frame while the simulation keeps stepping. The core has
no rendering dependency; these adapters are optional.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TextIO
import sys

import numpy as np

if TYPE_CHECKING:
    from ..world import WireView, WorldSnapshot


class RendererAdapter(ABC):
    """
    Abstract base class for renderer implementations.

    Subclasses implement the drawing methods for a graphics backend
    (matplotlib, pyglet, a web frontend, ...).

    Usage:
        renderer = MyRenderer()
        renderer.render_world(world.snapshot(include_tree=True))
    """

    @abstractmethod
    def begin_frame(self, time: float, frame: int) -> None:
        """Begin a new frame at simulation time `time`."""
        ...

    @abstractmethod
    def draw_particle(
        self,
        particle_id: int,
        position: np.ndarray,
        velocity: np.ndarray,
        charge: float,
    ) -> None:
        """Draw a single particle."""
        ...

    @abstractmethod
    def draw_wire(self, wire: "WireView") -> None:
        """Draw a wire polyline."""
        ...

    def draw_node(self, x0: float, y0: float, size: float) -> None:
        """Draw one quadtree square. Ignored unless overridden."""
        pass

    @abstractmethod
    def end_frame(self) -> None:
        """Finalize the current frame."""
        ...

    def render_world(self, snapshot: "WorldSnapshot") -> None:
        """
        Draw a whole snapshot: tree squares, wires, then particles.

        Args:
            snapshot: State to draw.
        """
        self.begin_frame(snapshot.time, snapshot.frame)
        for x0, y0, size in snapshot.tree_rects:
            self.draw_node(x0, y0, size)
        for wire in snapshot.wires:
            self.draw_wire(wire)
        for i in range(len(snapshot)):
            self.draw_particle(
                int(snapshot.ids[i]),
                snapshot.positions[i],
                snapshot.velocities[i],
                float(snapshot.charges[i]),
            )
        self.end_frame()


class DebugRenderer(RendererAdapter):
    """
    Text renderer for development and testing.

    Output:
        === Frame 12 t=0.1200 ===
        wire 1 conductor 2 pts r=2.00
        [1] q=-1.00 @ (5.01, 0.00) v=(0.12, 0.00)
    """

    def __init__(self, output: TextIO | None = None, verbose: bool = True):
        """
        Args:
            output: Output stream (defaults to sys.stdout).
            verbose: If True, include velocities.
        """
        self.output = output or sys.stdout
        self.verbose = verbose

    def begin_frame(self, time: float, frame: int) -> None:
        self.output.write(f"=== Frame {frame} t={time:.4f} ===\n")

    def draw_particle(self, particle_id, position, velocity, charge) -> None:
        line = f"[{particle_id}] q={charge:.2f} @ ({position[0]:.2f}, {position[1]:.2f})"
        if self.verbose:
            line += f" v=({velocity[0]:.2f}, {velocity[1]:.2f})"
        self.output.write(line + "\n")

    def draw_wire(self, wire) -> None:
        self.output.write(
            f"wire {wire.id} {wire.kind.value} {len(wire.points)} pts r={wire.capture_radius:.2f}\n"
        )

    def end_frame(self) -> None:
        self.output.write("\n")
        self.output.flush()


class NullRenderer(RendererAdapter):
    """No-op renderer, for benchmarks without drawing overhead."""

    def begin_frame(self, time: float, frame: int) -> None:
        pass

    def draw_particle(self, particle_id, position, velocity, charge) -> None:
        pass

    def draw_wire(self, wire) -> None:
        pass

    def end_frame(self) -> None:
        pass


class BufferedRenderer(RendererAdapter):
    """
    Renderer that records frames as plain dicts.

    Example:
        renderer = BufferedRenderer()
        for _ in range(100):
            world.step()
            renderer.render_world(world.snapshot())

        for frame in renderer.frames:
            print(frame["time"], len(frame["particles"]))
    """

    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []
        self._current: dict[str, Any] | None = None

    def begin_frame(self, time: float, frame: int) -> None:
        self._current = {"time": time, "frame": frame, "particles": [], "wires": [], "nodes": 0}

    def draw_particle(self, particle_id, position, velocity, charge) -> None:
        if self._current is None:
            return
        self._current["particles"].append({
            "id": particle_id,
            "position": position.tolist(),
            "velocity": velocity.tolist(),
            "charge": charge,
        })

    def draw_wire(self, wire) -> None:
        if self._current is None:
            return
        self._current["wires"].append({
            "id": wire.id,
            "kind": wire.kind.value,
            "points": wire.points.tolist(),
        })

    def draw_node(self, x0: float, y0: float, size: float) -> None:
        if self._current is not None:
            self._current["nodes"] += 1

    def end_frame(self) -> None:
        if self._current is not None:
            self.frames.append(self._current)
            self._current = None

    def clear(self) -> None:
        self.frames.clear()
