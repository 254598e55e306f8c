# MIT License (see LICENSE)
"""
Core type definitions for the electrostatic simulation.

Defines the fundamental data structures:
- Rect: axis-aligned rectangle used for world bounds and selection.
- Particle: a charged point mass ("electron").
- Wire, WireKind: a polyline conductor and its redistribution rule.

The equations of motion are plain Newtonian mechanics for point charges:
  dx/dt = v
  dv/dt = F/m,  F = Σ k q_i q_j r̂ / max(r², ε²)
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .constants import DEFAULT_CAPTURE_RADIUS
from .util import f64


# =============================================================================
# Geometry
# =============================================================================

@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle [x0, x1) x [y0, y1).

    The y axis grows "down" in screen terms, so (x0, y0) is the top-left
    corner. Membership tests for selection are half-open: left and top edges
    are inside, right and bottom edges are outside.

    Attributes:
        x0, y0: Minimum corner.
        x1, y1: Maximum corner.
    """
    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_corners(cls, a, b) -> "Rect":
        """Build a normalized rectangle from two opposite corners in any order."""
        (ax, ay), (bx, by) = a, b
        return cls(float(min(ax, bx)), float(min(ay, by)), float(max(ax, bx)), float(max(ay, by)))

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, x: float, y: float) -> bool:
        """Half-open membership: x0 <= x < x1 and y0 <= y < y1."""
        return self.x0 <= x < self.x1 and self.y0 <= y < self.y1

    def contains_closed(self, x: float, y: float) -> bool:
        """Closed membership, used for world bounds."""
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def overlaps(self, other: "Rect") -> bool:
        """True if the two rectangles share any area or edge."""
        return (
            self.x0 <= other.x1 and other.x0 <= self.x1 and
            self.y0 <= other.y1 and other.y0 <= self.y1
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x0, self.y0, self.x1, self.y1)


# =============================================================================
# Particles
# =============================================================================

@dataclass
class Particle:
    """
    A charged point particle.

    Attributes:
        position: Position [x, y].
        velocity: Velocity [vx, vy].
        charge: Signed charge. Changed in place by conductor wires.
        mass: Inertial mass, always > 0.
        id: Unique identifier assigned by the World.

    Note:
        Position and velocity are converted to float64 numpy arrays on init.
    """
    position: np.ndarray | tuple[float, float] = (0.0, 0.0)
    velocity: np.ndarray | tuple[float, float] = (0.0, 0.0)
    charge: float = -1.0
    mass: float = 1.0
    id: int = -1

    def __post_init__(self) -> None:
        self.position = f64(self.position)
        self.velocity = f64(self.velocity)
        self.charge = float(self.charge)
        self.mass = float(self.mass)

    @property
    def inv_mass(self) -> float:
        return 1.0 / self.mass


# =============================================================================
# Wires
# =============================================================================

class WireKind(str, Enum):
    """
    Redistribution rule applied to the particles a wire captures.

    CONDUCTOR: ideal conductor, captured charges become their mean.
    SOURCE:    fixed-charge source, captured total is clamped to target_charge.
    POLARITY:  conductor that only equalizes charges of one sign.
    RESISTOR:  partial relaxation toward the mean, rate set by conductance.
    """
    CONDUCTOR = "conductor"
    SOURCE = "source"
    POLARITY = "polarity"
    RESISTOR = "resistor"


@dataclass
class Wire:
    """
    A conductor made of connected straight segments.

    Attributes:
        points: Ordered anchor points, shape (N, 2) with N >= 2.
        kind: Redistribution rule (see WireKind).
        capture_radius: Particles within this distance of any segment are
                        attached to the wire.
        target_charge: Total charge held by a SOURCE wire.
        polarity: Sign (+1 or -1) of the charges a POLARITY wire equalizes.
        conductance: Relaxation fraction per step of a RESISTOR wire, in (0, 1].
        id: Unique identifier assigned by the World.
    """
    points: np.ndarray
    kind: WireKind = WireKind.CONDUCTOR
    capture_radius: float = DEFAULT_CAPTURE_RADIUS
    target_charge: float = 0.0
    polarity: int = -1
    conductance: float = 0.5
    id: int = -1

    def __post_init__(self) -> None:
        self.points = f64(self.points).reshape(-1, 2)
        self.kind = WireKind(self.kind)
        self.capture_radius = float(self.capture_radius)

    @property
    def segments(self) -> tuple[np.ndarray, np.ndarray]:
        """Segment start and end points, each of shape (N-1, 2)."""
        return self.points[:-1], self.points[1:]

    def bounding_rect(self) -> Rect:
        """Bounding box of the wire grown by its capture radius."""
        lo = self.points.min(axis=0) - self.capture_radius
        hi = self.points.max(axis=0) + self.capture_radius
        return Rect(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))
