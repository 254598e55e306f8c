# MIT License (see LICENSE)
"""
Commands accepted by the World.

The input/UI layer never mutates simulation state directly. It submits
command objects; the World validates each one immediately (raising
ValidationError and leaving the world unchanged on bad input), queues it,
and applies the queue at the next step boundary.

Example:
    world.submit(AddParticle(position=(10, 20), charge=-1.0))
    world.submit(PlaceWire(points=[(0, 0), (100, 0)]))
    world.step()
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Sequence, Union

import numpy as np

from .constants import DEFAULT_CAPTURE_RADIUS, ELECTRON_CHARGE, ELECTRON_MASS
from .errors import ValidationError
from .types import Rect, WireKind


def _finite_vec(value: Any, name: str) -> np.ndarray:
    try:
        v = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be numeric, got {value!r}") from None
    if v.shape != (2,):
        raise ValidationError(f"{name} must have 2 components, got shape {v.shape}")
    if not np.all(np.isfinite(v)):
        raise ValidationError(f"{name} must be finite, got {v.tolist()}")
    return v


def _finite(value: Any, name: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise ValidationError(f"{name} must be finite, got {v}")
    return v


@dataclass(frozen=True)
class AddParticle:
    """Spawn a particle. Applying it yields the new particle id."""
    position: Sequence[float]
    velocity: Sequence[float] = (0.0, 0.0)
    charge: float = ELECTRON_CHARGE
    mass: float = ELECTRON_MASS

    def validate(self, bounds: Rect) -> None:
        pos = _finite_vec(self.position, "position")
        _finite_vec(self.velocity, "velocity")
        _finite(self.charge, "charge")
        if not _finite(self.mass, "mass") > 0.0:
            raise ValidationError(f"mass must be positive, got {self.mass}")
        if not bounds.contains_closed(pos[0], pos[1]):
            raise ValidationError(
                f"position {pos.tolist()} lies outside world bounds {bounds.as_tuple()}"
            )


@dataclass(frozen=True)
class RemoveParticle:
    """Remove a particle by id."""
    id: int

    def validate(self, bounds: Rect) -> None:
        pass


@dataclass(frozen=True)
class PlaceWire:
    """
    Place a wire through ordered points. Applying it yields the new wire id.

    Attributes:
        points: At least two (x, y) anchor points.
        kind: WireKind or its string value.
        capture_radius: Attachment distance, > 0.
        target_charge: Total charge of a SOURCE wire.
        polarity: +1 or -1, for POLARITY wires.
        conductance: In (0, 1], for RESISTOR wires.
    """
    points: Sequence[Sequence[float]]
    kind: WireKind | str = WireKind.CONDUCTOR
    capture_radius: float = DEFAULT_CAPTURE_RADIUS
    target_charge: float = 0.0
    polarity: int = -1
    conductance: float = 0.5

    def validate(self, bounds: Rect) -> None:
        try:
            pts = np.asarray(self.points, dtype=np.float64)
        except (TypeError, ValueError):
            raise ValidationError(f"wire points must be numeric, got {self.points!r}") from None
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValidationError(f"wire points must have shape (N, 2), got {pts.shape}")
        if len(pts) < 2:
            raise ValidationError(f"a wire needs at least 2 points, got {len(pts)}")
        if not np.all(np.isfinite(pts)):
            raise ValidationError("wire points must be finite")
        try:
            kind = WireKind(self.kind)
        except ValueError:
            known = ", ".join(k.value for k in WireKind)
            raise ValidationError(f"unknown wire kind {self.kind!r} (known: {known})") from None
        if not _finite(self.capture_radius, "capture_radius") > 0.0:
            raise ValidationError(f"capture_radius must be positive, got {self.capture_radius}")
        if kind is WireKind.SOURCE:
            _finite(self.target_charge, "target_charge")
        elif kind is WireKind.POLARITY and self.polarity not in (-1, 1):
            raise ValidationError(f"polarity must be +1 or -1, got {self.polarity!r}")
        elif kind is WireKind.RESISTOR:
            c = _finite(self.conductance, "conductance")
            if not 0.0 < c <= 1.0:
                raise ValidationError(f"conductance must be in (0, 1], got {c}")


@dataclass(frozen=True)
class RemoveWire:
    """
    Remove a wire by id.

    With purge_particles the particles the wire captures at the time the
    command is applied are removed too.
    """
    id: int
    purge_particles: bool = False

    def validate(self, bounds: Rect) -> None:
        pass


@dataclass(frozen=True)
class SetParameter:
    """Change a simulation parameter; the value is clamped into range."""
    name: str
    value: float

    def validate(self, bounds: Rect) -> None:
        # Name and value are checked by clamp_parameter at submission
        pass


@dataclass(frozen=True)
class Reset:
    """Remove every particle and wire."""

    def validate(self, bounds: Rect) -> None:
        pass


Command = Union[AddParticle, RemoveParticle, PlaceWire, RemoveWire, SetParameter, Reset]
