import numpy as np
from electron_sim.commands import AddParticle, PlaceWire
from electron_sim.presets import dipole, large_plate, three_body, two_body, uniform_disc, uniform_rect
from electron_sim.types import Rect


def _positions(commands):
    return np.array([c.position for c in commands if isinstance(c, AddParticle)], dtype=float)


def test_uniform_disc_is_seeded_and_ordered():
    a = uniform_disc(200, seed=1)
    b = uniform_disc(200, seed=1)
    assert np.array_equal(_positions(a), _positions(b))
    assert not np.array_equal(_positions(a), _positions(uniform_disc(200, seed=2)))

    r = np.hypot(*_positions(a).T)
    assert len(r) == 200
    assert np.all(np.diff(r) >= -1e-9)
    # Annulus between the inner radius and 5 * sqrt(n)
    assert r.min() >= 25.0 - 1e-9
    assert r.max() <= 5.0 * np.sqrt(200) + 1e-9


def test_uniform_rect_inside_rect():
    rect = Rect(10.0, -5.0, 30.0, 5.0)
    pos = _positions(uniform_rect(100, rect, charge=2.0, seed=0))
    assert np.all((pos[:, 0] >= 10.0) & (pos[:, 0] < 30.0))
    assert np.all((pos[:, 1] >= -5.0) & (pos[:, 1] < 5.0))


def test_small_scenes():
    assert [c.position for c in two_body(8.0)] == [(4.0, 0.0), (-4.0, 0.0)]
    assert sum(c.charge for c in dipole(magnitude=3.0)) == 0.0
    wires = [c for c in three_body() if isinstance(c, PlaceWire)]
    assert len(wires) == 1
    assert len(three_body()) == 4


def test_large_plate_covers_rect():
    rect = Rect(-80.0, -40.0, 80.0, 40.0)
    commands = large_plate(50, rect, seed=3)
    wires = [c for c in commands if isinstance(c, PlaceWire)]
    assert len(commands) == 58
    assert len(wires) == 8
    # Adjacent capture bands touch, so every height in rect is covered
    ys = sorted(w.points[0][1] for w in wires)
    assert ys[0] - wires[0].capture_radius == rect.y0
    assert np.allclose(np.diff(ys), 2 * wires[0].capture_radius)
    pos = _positions(commands)
    assert np.all(np.abs(pos[:, 0]) <= 0.45 * rect.width)
