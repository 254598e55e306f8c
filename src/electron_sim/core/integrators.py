# MIT License (see LICENSE)
"""
Time integration of point charges.

Particles are advanced with semi-implicit (symplectic) Euler:

    v(t+dt) = v(t) + F/m * dt
    x(t+dt) = x(t) + v(t+dt) * dt

The velocity update uses the new force and the position update uses the
new velocity, which keeps orbits bounded far better than explicit Euler at
the same cost. Forces are evaluated once per step by the World.

After the update a damping multiplier is applied to the velocity and the
world bounds are enforced by clamping and reflection, so particles are
never lost.

Reference:
    https://en.wikipedia.org/wiki/Semi-implicit_Euler_method
"""
from __future__ import annotations

import numpy as np

from ..types import Particle, Rect


def symplectic_euler_step(particle: Particle, force: np.ndarray, dt: float, damping: float = 1.0) -> None:
    """
    Advance velocity then position by dt (in place).

    Args:
        particle: Particle to integrate.
        force: Net force [Fx, Fy] on the particle.
        dt: Timestep.
        damping: Velocity multiplier applied after the update (1 = none).
    """
    a = force * particle.inv_mass
    particle.velocity = particle.velocity + a * dt
    particle.position = particle.position + particle.velocity * dt
    if damping != 1.0:
        particle.velocity = particle.velocity * damping


def reflect_at_bounds(particle: Particle, bounds: Rect, restitution: float = 1.0) -> bool:
    """
    Clamp a particle into bounds, reflecting outward velocity components.

    For each axis, a position past a bound is set to the bound. If the
    velocity on that axis still points out of the world it becomes
    -restitution times itself.

    Returns:
        True if the particle touched a bound.
    """
    hit = False
    pos, vel = particle.position, particle.velocity
    for axis, lo, hi in ((0, bounds.x0, bounds.x1), (1, bounds.y0, bounds.y1)):
        if pos[axis] < lo:
            pos[axis] = lo
            if vel[axis] < 0.0:
                vel[axis] = -restitution * vel[axis]
            hit = True
        elif pos[axis] > hi:
            pos[axis] = hi
            if vel[axis] > 0.0:
                vel[axis] = -restitution * vel[axis]
            hit = True
    return hit


def integrate(
    particle: Particle,
    force: np.ndarray,
    dt: float,
    bounds: Rect,
    damping: float = 1.0,
    restitution: float = 1.0,
) -> Particle:
    """
    One full integration step: kick, drift, damp, then enforce bounds.

    Args:
        particle: Particle to integrate (modified in place).
        force: Net force on the particle for this step.
        dt: Timestep.
        bounds: World bounds.
        damping: Velocity multiplier (1 = no damping).
        restitution: Fraction of normal velocity kept on a bounce.

    Returns:
        The same particle, for chaining.
    """
    symplectic_euler_step(particle, force, dt, damping)
    reflect_at_bounds(particle, bounds, restitution)
    return particle
