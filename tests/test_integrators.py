import numpy as np
import pytest
from electron_sim.core.integrators import integrate, reflect_at_bounds, symplectic_euler_step
from electron_sim.types import Particle, Rect

BOUNDS = Rect(-100.0, -100.0, 100.0, 100.0)


def test_symplectic_euler_uses_new_velocity():
    """Position advances with the updated velocity, not the old one."""
    p = Particle(position=(0.0, 0.0), velocity=(1.0, 0.0), mass=2.0)
    symplectic_euler_step(p, np.array([2.0, 0.0]), dt=0.5)
    assert p.velocity[0] == pytest.approx(1.5)
    # Explicit Euler would give 0.5
    assert p.position[0] == pytest.approx(0.75)


def test_reflection_at_min_edge():
    """A particle leaving through the left edge is clamped and bounced."""
    p = Particle(position=(-100.0, 0.0), velocity=(-1.0, 0.0))
    integrate(p, np.zeros(2), dt=0.01, bounds=BOUNDS, restitution=1.0)
    assert p.position[0] == -100.0
    assert p.velocity[0] == 1.0


def test_reflection_at_max_edge():
    p = Particle(position=(0.0, 100.0), velocity=(0.0, 1.0))
    integrate(p, np.zeros(2), dt=0.01, bounds=BOUNDS, restitution=1.0)
    assert p.position[1] == 100.0
    assert p.velocity[1] == -1.0


def test_restitution_scales_bounce():
    p = Particle(position=(99.99, 0.0), velocity=(2.0, 0.5))
    integrate(p, np.zeros(2), dt=0.01, bounds=BOUNDS, restitution=0.5)
    assert p.position[0] == 100.0
    assert p.velocity[0] == pytest.approx(-1.0)
    # Tangential component untouched
    assert p.velocity[1] == 0.5


def test_inward_velocity_is_not_flipped():
    p = Particle(position=(-101.0, 0.0), velocity=(0.5, 0.0))
    hit = reflect_at_bounds(p, BOUNDS)
    assert hit
    assert p.position[0] == -100.0
    assert p.velocity[0] == 0.5


def test_reflect_reports_no_hit_inside():
    p = Particle(position=(10.0, -20.0), velocity=(-3.0, 3.0))
    assert not reflect_at_bounds(p, BOUNDS)
    assert np.array_equal(p.velocity, [-3.0, 3.0])


def test_damping_applies_after_drift():
    p = Particle(position=(0.0, 0.0), velocity=(2.0, 0.0))
    integrate(p, np.zeros(2), dt=1.0, bounds=BOUNDS, damping=0.5)
    assert p.position[0] == 2.0
    assert p.velocity[0] == 1.0


def test_particles_never_leave_bounds():
    rng = np.random.default_rng(1)
    particles = [
        Particle(position=xy, velocity=v)
        for xy, v in zip(rng.uniform(-90, 90, size=(100, 2)), rng.normal(0, 500, size=(100, 2)))
    ]
    for _ in range(50):
        for p in particles:
            integrate(p, rng.normal(0, 1e4, size=2), dt=0.05, bounds=BOUNDS, restitution=0.8)
            assert BOUNDS.contains_closed(p.position[0], p.position[1])
