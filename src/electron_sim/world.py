# MIT License (see LICENSE)
"""
The simulation world and its step loop.

The World owns all particles and wires and is the only place simulation
state changes. It manages:
- The particle and wire sets, keyed and ordered by id.
- The scalar parameters (SimParams) and the world bounds.
- A command queue filled by the input/UI layer and drained at step
  boundaries, so a step always sees a consistent particle/wire set.
- The step itself, in strict order:
    1. Rebuild the Barnes-Hut tree from current positions and charges.
    2. Evaluate the net Coulomb force on every particle.
    3. Redistribute charge along wires.
    4. Integrate every particle (symplectic Euler, bounded).

A step that produces a non-finite value is rolled back and reported with
NumericDegeneracy; the world keeps its pre-step state.

Structure:
    - User creates a World with bounds.
    - User (or a UI thread) submits commands: add_particle(), place_wire()...
    - User calls world.step() in a loop and reads world.snapshot().
"""
from __future__ import annotations
import contextlib
import itertools
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import numpy as np

from .commands import (
    AddParticle,
    Command,
    PlaceWire,
    RemoveParticle,
    RemoveWire,
    Reset,
    SetParameter,
)
from .constants import DEFAULT_CAPTURE_RADIUS, ELECTRON_CHARGE, ELECTRON_MASS
from .core.conductors import capture_mask, redistribute
from .core.forces import evaluate_forces
from .core.integrators import integrate
from .errors import NumericDegeneracy, ValidationError
from .params import SimParams, canonical_name, clamp_parameter
from .profiler import Profiler
from .spatial.quadtree import SpatialTree, build_tree
from .types import Particle, Rect, Wire, WireKind

logger = logging.getLogger(__name__)


# =============================================================================
# Read-only views for the rendering layer
# =============================================================================

@dataclass(frozen=True)
class WireView:
    """Read-only wire geometry."""
    id: int
    kind: WireKind
    points: np.ndarray
    capture_radius: float


@dataclass(frozen=True)
class WorldSnapshot:
    """
    Read-only copy of the world state for renderers.

    Arrays are copies with the writeable flag cleared; row i of every
    particle array belongs to ids[i].

    Attributes:
        time: Simulation time.
        frame: Number of completed steps.
        ids: Particle ids, shape (N,).
        positions, velocities: Shape (N, 2).
        charges, masses: Shape (N,).
        wires: Wire geometries ordered by id.
        tree_rects: (x0, y0, size) of every node of the last step's tree,
                    empty unless requested.
    """
    time: float
    frame: int
    ids: np.ndarray
    positions: np.ndarray
    velocities: np.ndarray
    charges: np.ndarray
    masses: np.ndarray
    wires: tuple[WireView, ...]
    tree_rects: tuple[tuple[float, float, float], ...] = ()

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class StepReport:
    """Summary of one committed step."""
    frame: int
    time: float
    dt: float
    interactions: int
    tree_nodes: int
    tree_depth: int
    merged_buckets: int


_COMMAND_TYPES = (AddParticle, RemoveParticle, PlaceWire, RemoveWire, SetParameter, Reset)


def _readonly(a: np.ndarray) -> np.ndarray:
    a.flags.writeable = False
    return a


# =============================================================================
# World
# =============================================================================

@dataclass(eq=False)
class World:
    """
    Electrostatic particle world.

    Attributes:
        bounds: World rectangle; particles are kept inside it.
        params: Scalar simulation parameters.
        workers: Threads used for force evaluation (1 = inline).
        profiler: Optional Profiler instance for timing statistics.
        particles: Live particles keyed by id (ascending).
        wires: Live wires keyed by id (ascending).
        time: Simulation time.
        frame: Number of completed steps.
    """
    bounds: Rect = field(default_factory=lambda: Rect(-400.0, -400.0, 400.0, 400.0))
    params: SimParams = field(default_factory=SimParams)
    workers: int = 1
    profiler: Profiler | None = None

    # Internal state
    particles: dict[int, Particle] = field(default_factory=dict, init=False)
    wires: dict[int, Wire] = field(default_factory=dict, init=False)
    time: float = field(default=0.0, init=False)
    frame: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        b = self.bounds
        if not all(math.isfinite(v) for v in b.as_tuple()) or b.width <= 0 or b.height <= 0:
            raise ValidationError(f"World bounds must be finite with positive area, got {b.as_tuple()}")
        if self.workers < 1:
            raise ValidationError(f"workers must be >= 1, got {self.workers}")

        self._lock = threading.Lock()
        self._queue: deque[tuple[Command, int | None]] = deque()
        self._particle_ids = itertools.count(1)
        self._wire_ids = itertools.count(1)
        # Ids that exist once the queue is drained
        self._known_particles: set[int] = set()
        self._known_wires: set[int] = set()

        self._tree: SpatialTree | None = None
        self._query_tree: SpatialTree | None = None
        self._version = 0
        self._query_version = -1

        logger.info(
            "World created: bounds=%s params=%s workers=%d",
            b.as_tuple(), self.params.to_dict(), self.workers,
        )

    @classmethod
    def from_commands(cls, commands: Iterable[Command], bounds: Rect | None = None, **kwargs: Any) -> "World":
        """
        Create a world and apply a batch of commands to it.

        Args:
            commands: Commands applied in order.
            bounds: World bounds (default: World's default bounds).
            **kwargs: Other World fields (params, workers, profiler).
        """
        world = cls(**kwargs) if bounds is None else cls(bounds=bounds, **kwargs)
        for command in commands:
            world.submit(command)
        world.apply_pending()
        return world

    # -------------------------------------------------------------------------
    # Command submission (any thread)
    # -------------------------------------------------------------------------

    def submit(self, command: Command) -> Any:
        """
        Validate a command and queue it for the next step boundary.

        Returns:
            AddParticle / PlaceWire: the id the new object will have.
            RemoveParticle / RemoveWire: True if the id exists (or is queued
            to exist), False if not found.
            SetParameter: the clamped value that will be applied.
            Reset: None.

        Raises:
            ValidationError: If the command is malformed. Nothing is queued.
        """
        if not isinstance(command, _COMMAND_TYPES):
            raise ValidationError(f"Unknown command type: {type(command).__name__}")
        command.validate(self.bounds)
        if isinstance(command, SetParameter):
            command = SetParameter(canonical_name(command.name), clamp_parameter(command.name, command.value))

        with self._lock:
            result: Any = None
            reserved: int | None = None
            if isinstance(command, AddParticle):
                reserved = result = next(self._particle_ids)
                self._known_particles.add(reserved)
            elif isinstance(command, PlaceWire):
                reserved = result = next(self._wire_ids)
                self._known_wires.add(reserved)
            elif isinstance(command, RemoveParticle):
                result = command.id in self._known_particles
                self._known_particles.discard(command.id)
            elif isinstance(command, RemoveWire):
                result = command.id in self._known_wires
                self._known_wires.discard(command.id)
            elif isinstance(command, SetParameter):
                result = command.value
            else:
                self._known_particles.clear()
                self._known_wires.clear()
            self._queue.append((command, reserved))
        return result

    def add_particle(
        self,
        position: Sequence[float],
        velocity: Sequence[float] = (0.0, 0.0),
        charge: float = ELECTRON_CHARGE,
        mass: float = ELECTRON_MASS,
    ) -> int:
        """Queue a new particle; return its id."""
        return self.submit(AddParticle(position=position, velocity=velocity, charge=charge, mass=mass))

    def remove_particle(self, particle_id: int) -> bool:
        """Queue removal of a particle; return False if the id is unknown."""
        return self.submit(RemoveParticle(particle_id))

    def place_wire(
        self,
        points: Sequence[Sequence[float]],
        kind: WireKind | str = WireKind.CONDUCTOR,
        capture_radius: float = DEFAULT_CAPTURE_RADIUS,
        **variant: Any,
    ) -> int:
        """
        Queue a new wire; return its id.

        Args:
            points: Ordered anchor points (at least 2).
            kind: Redistribution rule.
            capture_radius: Attachment distance.
            **variant: target_charge, polarity or conductance.
        """
        return self.submit(PlaceWire(points=points, kind=kind, capture_radius=capture_radius, **variant))

    def remove_wire(self, wire_id: int, purge_particles: bool = False) -> bool:
        """Queue removal of a wire; return False if the id is unknown."""
        return self.submit(RemoveWire(wire_id, purge_particles))

    def set_parameter(self, name: str, value: float) -> float | int:
        """Queue a parameter change; return the clamped value."""
        return self.submit(SetParameter(name, value))

    def reset(self) -> None:
        """Queue removal of every particle and wire."""
        self.submit(Reset())

    @property
    def pending(self) -> int:
        """Number of queued commands."""
        with self._lock:
            return len(self._queue)

    # -------------------------------------------------------------------------
    # Command application (simulation thread, between steps)
    # -------------------------------------------------------------------------

    def apply_pending(self) -> int:
        """
        Drain the command queue and apply every command in order.

        Called automatically at the start of step(). Returns the number of
        commands applied.
        """
        with self._lock:
            batch = list(self._queue)
            self._queue.clear()
        for command, reserved in batch:
            self._apply(command, reserved)
        if batch:
            self._version += 1
        return len(batch)

    def _apply(self, command: Command, reserved: int | None) -> None:
        if isinstance(command, AddParticle):
            self.particles[reserved] = Particle(
                position=command.position,
                velocity=command.velocity,
                charge=command.charge,
                mass=command.mass,
                id=reserved,
            )
            logger.debug("added particle %d at %s", reserved, list(command.position))
        elif isinstance(command, RemoveParticle):
            if self.particles.pop(command.id, None) is not None:
                logger.debug("removed particle %d", command.id)
        elif isinstance(command, PlaceWire):
            self.wires[reserved] = Wire(
                points=command.points,
                kind=WireKind(command.kind),
                capture_radius=command.capture_radius,
                target_charge=float(command.target_charge),
                polarity=int(command.polarity),
                conductance=float(command.conductance),
                id=reserved,
            )
            logger.debug("placed %s wire %d with %d points", WireKind(command.kind).value, reserved, len(command.points))
        elif isinstance(command, RemoveWire):
            wire = self.wires.pop(command.id, None)
            if wire is None:
                return
            purged = 0
            if command.purge_particles and self.particles:
                live = list(self.particles.values())
                mask = capture_mask(wire, np.array([p.position for p in live]))
                doomed = [p.id for p, hit in zip(live, mask) if hit]
                for pid in doomed:
                    del self.particles[pid]
                with self._lock:
                    self._known_particles.difference_update(doomed)
                purged = len(doomed)
            logger.debug("removed wire %d (purged %d particle(s))", command.id, purged)
        elif isinstance(command, SetParameter):
            self.params = self.params.with_value(command.name, command.value)
            logger.debug("parameter %s = %r", command.name, command.value)
        elif isinstance(command, Reset):
            self.particles.clear()
            self.wires.clear()
            self._tree = None
            logger.info("world reset")

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def _section(self, name: str):
        if self.profiler is None:
            return contextlib.nullcontext()
        return self.profiler.section(name)

    def step(self, dt: float | None = None) -> StepReport:
        """
        Advance the simulation by one step.

        Queued commands are applied first; they stay applied even if the
        step itself is rolled back.

        Args:
            dt: Timestep for this step (default: params.dt).

        Returns:
            StepReport for the committed step.

        Raises:
            ValidationError: If dt is not a positive finite number.
            NumericDegeneracy: If the step produced a non-finite value.
                The world is restored to its state before the step.
        """
        if dt is not None:
            dt = float(dt)
            if not (math.isfinite(dt) and dt > 0.0):
                raise ValidationError(f"dt must be positive and finite, got {dt}")

        with self._section("commands"):
            self.apply_pending()

        prm = self.params
        dt = prm.dt if dt is None else dt
        particles = list(self.particles.values())
        saved = [(p.position.copy(), p.velocity.copy(), p.charge) for p in particles]

        try:
            with self._section("tree"):
                tree = build_tree(particles, self.bounds, prm.max_tree_depth)

            with self._section("forces"):
                forces, interactions = evaluate_forces(
                    tree, prm.theta, prm.softening, prm.coulomb_k, workers=self.workers
                )
            bad = ~np.all(np.isfinite(forces), axis=1) if len(forces) else np.zeros(0, dtype=bool)
            self._check("forces", particles, bad)

            with self._section("conductors"):
                redistribute(self.wires.values(), particles)
            self._check("conductors", particles, [not math.isfinite(p.charge) for p in particles])

            with self._section("integrate"):
                for p, f in zip(particles, forces):
                    integrate(p, f, dt, self.bounds, prm.damping, prm.restitution)
            self._check("integrate", particles, [
                not (np.all(np.isfinite(p.position)) and np.all(np.isfinite(p.velocity)))
                for p in particles
            ])
        except NumericDegeneracy as exc:
            for p, (pos, vel, q) in zip(particles, saved):
                p.position, p.velocity, p.charge = pos, vel, q
            logger.warning("step %d rolled back: %s", self.frame + 1, exc)
            raise

        self._tree = tree
        self._version += 1
        self.time += dt
        self.frame += 1
        return StepReport(
            frame=self.frame,
            time=self.time,
            dt=dt,
            interactions=interactions,
            tree_nodes=len(tree),
            tree_depth=tree.depth,
            merged_buckets=tree.merged_buckets,
        )

    @staticmethod
    def _check(phase: str, particles: list[Particle], bad: Sequence[bool]) -> None:
        ids = [p.id for p, b in zip(particles, bad) if b]
        if ids:
            raise NumericDegeneracy(phase, ids)

    def run(self, steps: int, dt: float | None = None) -> list[StepReport]:
        """Run several steps and return their reports."""
        return [self.step(dt) for _ in range(steps)]

    # -------------------------------------------------------------------------
    # Queries (read-only)
    # -------------------------------------------------------------------------

    @property
    def tree(self) -> SpatialTree | None:
        """Tree built by the last committed step (None before the first)."""
        return self._tree

    def _current_tree(self) -> SpatialTree:
        """Tree over the committed particle state, rebuilt only when it changed."""
        if self._query_tree is None or self._query_version != self._version:
            self._query_tree = build_tree(
                list(self.particles.values()), self.bounds, self.params.max_tree_depth
            )
            self._query_version = self._version
        return self._query_tree

    def select_region(self, rect: Rect) -> set[int]:
        """
        Ids of particles inside rect (x0 <= x < x1, y0 <= y < y1).

        Queued commands are not taken into account.

        Raises:
            ValidationError: If rect has zero or negative area.
        """
        if not (rect.width > 0.0 and rect.height > 0.0):
            raise ValidationError(f"selection rectangle must have positive area, got {rect.as_tuple()}")
        return self._current_tree().range_query(rect)

    def wires_in_region(self, rect: Rect) -> list[int]:
        """Ids of wires whose capture area's bounding box overlaps rect."""
        return [w.id for w in self.wires.values() if w.bounding_rect().overlaps(rect)]

    def get_particle(self, particle_id: int) -> Particle | None:
        return self.particles.get(particle_id)

    def get_wire(self, wire_id: int) -> Wire | None:
        return self.wires.get(wire_id)

    def snapshot(self, include_tree: bool = False) -> WorldSnapshot:
        """
        Read-only copy of particle and wire state for rendering.

        Args:
            include_tree: Also copy the node rectangles of the last step's tree.
        """
        live = list(self.particles.values())
        n = len(live)
        ids = np.fromiter((p.id for p in live), dtype=np.int64, count=n)
        positions = np.array([p.position for p in live], dtype=np.float64).reshape(n, 2)
        velocities = np.array([p.velocity for p in live], dtype=np.float64).reshape(n, 2)
        charges = np.fromiter((p.charge for p in live), dtype=np.float64, count=n)
        masses = np.fromiter((p.mass for p in live), dtype=np.float64, count=n)
        wires = tuple(
            WireView(w.id, w.kind, _readonly(w.points.copy()), w.capture_radius)
            for w in self.wires.values()
        )
        rects: tuple[tuple[float, float, float], ...] = ()
        if include_tree and self._tree is not None:
            rects = tuple(self._tree.node_rects())
        return WorldSnapshot(
            time=self.time,
            frame=self.frame,
            ids=_readonly(ids),
            positions=_readonly(positions),
            velocities=_readonly(velocities),
            charges=_readonly(charges),
            masses=_readonly(masses),
            wires=wires,
            tree_rects=rects,
        )
