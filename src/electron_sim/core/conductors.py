# MIT License (see LICENSE)
"""
Charge redistribution along wires.

A wire captures every particle within its capture radius of any of its
segments. Captured particles then exchange charge according to the wire's
kind, modelling a conductor that reaches equilibrium much faster than the
particle motion:

- CONDUCTOR: every captured charge becomes the mean (conserves total).
- SOURCE:    the captured total is set to ``target_charge``, shared evenly.
- POLARITY:  only captured charges with the wire's sign are equalized.
- RESISTOR:  q += conductance * (mean - q), a partial step toward CONDUCTOR.

Redistribution only changes ``Particle.charge``. It runs after force
evaluation and before integration. Wires are applied in id order; a
particle captured by several wires is processed by each of them in turn.
"""
from __future__ import annotations
import logging
from typing import Iterable, Sequence

import numpy as np

from ..types import Particle, Wire, WireKind

logger = logging.getLogger(__name__)


def point_segment_distance(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Distance from each point to the segment ab.

    Projects each point onto the segment, clamps the projection parameter
    to [0, 1] and measures the distance to the clamped point. A degenerate
    segment (a == b) measures the distance to a.

    Args:
        points: Shape (N, 2).
        a, b: Segment endpoints, shape (2,).

    Returns:
        Distances of shape (N,).
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    ab = b - a
    ap = points - a
    denom = float(ab @ ab)
    if denom == 0.0:
        t = np.zeros(len(points))
    else:
        t = np.clip((ap @ ab) / denom, 0.0, 1.0)
    closest = a + t[:, None] * ab
    diff = points - closest
    return np.sqrt(np.einsum("ij,ij->i", diff, diff))


def capture_mask(wire: Wire, positions: np.ndarray) -> np.ndarray:
    """
    Boolean mask of the positions attached to a wire.

    A position is captured when its distance to any segment is at most the
    capture radius.
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    mask = np.zeros(len(positions), dtype=bool)
    if len(positions) == 0:
        return mask
    starts, ends = wire.segments
    r = wire.capture_radius
    for a, b in zip(starts, ends):
        mask |= point_segment_distance(positions, a, b) <= r
    return mask


def redistribute_charges(wire: Wire, charges: np.ndarray) -> np.ndarray:
    """
    New charges for the particles captured by one wire.

    Args:
        wire: The wire whose rule applies.
        charges: Charges of the captured particles, shape (M,), M >= 1.

    Returns:
        The redistributed charges, shape (M,).
    """
    charges = np.asarray(charges, dtype=np.float64)
    n = len(charges)

    if wire.kind is WireKind.CONDUCTOR:
        return np.full(n, charges.sum() / n)

    if wire.kind is WireKind.SOURCE:
        return np.full(n, wire.target_charge / n)

    if wire.kind is WireKind.POLARITY:
        out = charges.copy()
        same = charges * wire.polarity > 0.0
        m = int(same.sum())
        if m:
            out[same] = charges[same].sum() / m
        return out

    if wire.kind is WireKind.RESISTOR:
        mean = charges.sum() / n
        return charges + wire.conductance * (mean - charges)

    raise ValueError(f"Unknown wire kind: {wire.kind}")


def redistribute(wires: Iterable[Wire], particles: Sequence[Particle]) -> None:
    """
    Apply every wire's redistribution rule to the particles it captures.

    Args:
        wires: Wires, applied in the given order.
        particles: All particles; their charges are modified in place.
    """
    if not particles:
        return
    positions = np.array([p.position for p in particles], dtype=np.float64)
    charges = np.array([p.charge for p in particles], dtype=np.float64)

    touched = np.zeros(len(particles), dtype=bool)
    for wire in wires:
        idx = np.flatnonzero(capture_mask(wire, positions))
        if len(idx) == 0:
            continue
        charges[idx] = redistribute_charges(wire, charges[idx])
        touched[idx] = True
        logger.debug("wire %d (%s) captured %d particle(s)", wire.id, wire.kind.value, len(idx))

    for i in np.flatnonzero(touched):
        particles[i].charge = float(charges[i])
