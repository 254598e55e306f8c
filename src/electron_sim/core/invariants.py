# MIT License (see LICENSE)
"""
Utilities for calculating conserved quantities.

Used to verify simulation correctness and to report state. Without wires,
damping or boundary bounces total charge and linear momentum are conserved
(momentum exactly at theta = 0, within the approximation error otherwise).
"""
from __future__ import annotations
from typing import Iterable

import numpy as np

from ..types import Particle


def total_charge(particles: Iterable[Particle]) -> float:
    """Signed sum of all particle charges."""
    return float(sum(p.charge for p in particles))


def kinetic_energy(particles: Iterable[Particle]) -> float:
    """
    Total kinetic energy of a set of particles.

    T = Σ 0.5 * m * v²
    """
    ke = 0.0
    for p in particles:
        ke += 0.5 * p.mass * float(np.dot(p.velocity, p.velocity))
    return ke


def linear_momentum(particles: Iterable[Particle]) -> np.ndarray:
    """
    Total linear momentum of a set of particles.

    P = Σ m * v
    """
    out = np.zeros(2, dtype=np.float64)
    for p in particles:
        out += p.mass * p.velocity
    return out
