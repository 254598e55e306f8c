# MIT License (see LICENSE)
"""
Exception types raised by the simulation core.

Every condition here is recoverable: validation errors leave the world
untouched, numeric degeneracy rolls the world back to its pre-step state.
Tree capacity (the depth cap) is handled inside the tree by merging
particles into a bucket leaf and is never raised.
"""
from __future__ import annotations


class SimulationError(Exception):
    """Base exception for simulation errors."""

    pass


class ValidationError(SimulationError, ValueError):
    """Raised when a command or argument is malformed."""

    pass


class UnknownParameterError(ValidationError):
    """Raised when set_parameter names a parameter that does not exist."""

    pass


class NumericDegeneracy(SimulationError, ArithmeticError):
    """
    Raised when a step produces a non-finite force, charge, position or velocity.

    The world has already been restored to its pre-step state when this is
    raised.

    Attributes:
        phase: Step phase that produced the bad value ("forces",
               "conductors" or "integrate").
        particle_ids: Ids of the particles whose state went non-finite.
    """

    def __init__(self, phase: str, particle_ids: list[int]) -> None:
        self.phase = phase
        self.particle_ids = list(particle_ids)
        shown = ", ".join(str(i) for i in self.particle_ids[:8])
        if len(self.particle_ids) > 8:
            shown += ", ..."
        super().__init__(
            f"non-finite state during {phase} for particle(s) [{shown}]; step rolled back"
        )
