# MIT License (see LICENSE)
"""
Scene generators.

Each preset returns a list of commands; feed them to World.from_commands or
World.submit. Random presets take a seed and use numpy's default_rng, so the
same seed always yields the same scene.

Example:
    world = World.from_commands(uniform_disc(2000, seed=0), bounds=Rect(-400, -400, 400, 400))
"""
from __future__ import annotations
import math

import numpy as np

from .commands import AddParticle, Command, PlaceWire
from .constants import ELECTRON_CHARGE, ELECTRON_MASS
from .types import Rect, WireKind


def uniform_disc(
    n: int,
    inner_radius: float = 25.0,
    charge: float = ELECTRON_CHARGE,
    seed: int = 0,
) -> list[Command]:
    """
    n electrons spread uniformly over an annulus centred on the origin.

    The outer radius grows as 5 * sqrt(n) so density stays roughly constant.
    Particles are ordered by distance from the centre.
    """
    rng = np.random.default_rng(seed)
    outer_radius = math.sqrt(n) * 5.0
    t2 = min(1.0, inner_radius / outer_radius) ** 2 if outer_radius > 0 else 0.0
    angle = rng.uniform(0.0, 2.0 * math.pi, n)
    # Area-uniform radius between inner and outer
    r = outer_radius * np.sqrt(rng.uniform(0.0, 1.0, n) * (1.0 - t2) + t2)
    xy = np.column_stack([np.cos(angle) * r, np.sin(angle) * r])
    order = np.argsort(np.einsum("ij,ij->i", xy, xy), kind="stable")
    return [AddParticle(position=tuple(xy[i]), charge=charge, mass=ELECTRON_MASS) for i in order]


def uniform_rect(
    n: int,
    rect: Rect,
    charge: float = ELECTRON_CHARGE,
    seed: int = 0,
) -> list[Command]:
    """n electrons at uniformly random positions inside rect."""
    rng = np.random.default_rng(seed)
    xs = rng.uniform(rect.x0, rect.x1, n)
    ys = rng.uniform(rect.y0, rect.y1, n)
    return [AddParticle(position=(float(x), float(y)), charge=charge) for x, y in zip(xs, ys)]


def two_body(separation: float = 10.0, charge: float = ELECTRON_CHARGE) -> list[Command]:
    """Two equal charges on the x axis, separation apart."""
    h = 0.5 * separation
    return [
        AddParticle(position=(h, 0.0), charge=charge),
        AddParticle(position=(-h, 0.0), charge=charge),
    ]


def dipole(separation: float = 10.0, magnitude: float = 1.0) -> list[Command]:
    """A +q / -q pair at rest on the x axis."""
    h = 0.5 * separation
    return [
        AddParticle(position=(-h, 0.0), charge=magnitude),
        AddParticle(position=(h, 0.0), charge=-magnitude),
    ]


def three_body(charge: float = ELECTRON_CHARGE) -> list[Command]:
    """Three electrons above a horizontal conductor wire."""
    return [
        AddParticle(position=(5.0, 0.0), charge=charge),
        AddParticle(position=(-5.0, 0.0), charge=charge),
        AddParticle(position=(0.0, 5.0), charge=charge),
        PlaceWire(points=[(-40.0, -10.0), (40.0, -10.0)], kind=WireKind.CONDUCTOR, capture_radius=2.0),
    ]


def large_plate(
    n: int,
    rect: Rect,
    charge: float = ELECTRON_CHARGE,
    seed: int = 0,
) -> list[Command]:
    """
    n electrons over a conductor mesh covering rect.

    Electrons fill the central 90% of rect; horizontal conductor wires are
    laid across the whole rectangle with capture areas that tile it.
    """
    cx, cy = 0.5 * (rect.x0 + rect.x1), 0.5 * (rect.y0 + rect.y1)
    inner = Rect(
        cx - 0.45 * rect.width, cy - 0.45 * rect.height,
        cx + 0.45 * rect.width, cy + 0.45 * rect.height,
    )
    commands = uniform_rect(n, inner, charge=charge, seed=seed)
    rows = 8
    pitch = rect.height / rows
    for i in range(rows):
        y = rect.y0 + (i + 0.5) * pitch
        commands.append(PlaceWire(points=[(rect.x0, y), (rect.x1, y)], capture_radius=0.5 * pitch))
    return commands
