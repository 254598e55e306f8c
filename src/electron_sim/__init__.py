# MIT License (see LICENSE)
"""
electron_sim - A 2D electrostatic N-body simulation core.

Charged particles interact through softened Coulomb forces computed with a
Barnes-Hut quadtree, move under symplectic Euler inside rectangular bounds,
and exchange charge along conductor wires.

Main entry points:
    - World: Owns particles and wires, queues commands, runs steps.
    - SimParams: Tunable parameters (theta, softening, dt, ...).
    - Rect, Particle, Wire, WireKind: Value types.
    - Selection: UI-side rectangle selection.

Submodules:
    - spatial: Barnes-Hut quadtree and range queries.
    - core: Force evaluation, conductors, integrators, invariants.
    - commands: Command objects accepted by World.submit().
    - presets: Scene generators.
    - renderer: Optional visualization adapters.

Example:
    from electron_sim import World, Rect

    world = World(bounds=Rect(-100, -100, 100, 100))
    world.add_particle((-5, 0), charge=+1.0)
    world.add_particle((5, 0), charge=-1.0)
    world.step()
"""
import logging

from .world import World, WorldSnapshot, WireView, StepReport
from .params import SimParams, PARAMETER_RANGES
from .types import Particle, Rect, Wire, WireKind
from .selection import Selection
from .errors import SimulationError, ValidationError, UnknownParameterError, NumericDegeneracy

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Simulation
    "World",
    "WorldSnapshot",
    "WireView",
    "StepReport",
    "SimParams",
    "PARAMETER_RANGES",
    # Types
    "Particle",
    "Rect",
    "Wire",
    "WireKind",
    "Selection",
    # Errors
    "SimulationError",
    "ValidationError",
    "UnknownParameterError",
    "NumericDegeneracy",
]
