import threading

import numpy as np
import pytest
from electron_sim.commands import AddParticle, PlaceWire, SetParameter
from electron_sim.core.invariants import kinetic_energy, linear_momentum, total_charge
from electron_sim.errors import NumericDegeneracy, UnknownParameterError, ValidationError
from electron_sim.params import SimParams
from electron_sim.presets import large_plate, two_body, uniform_disc
from electron_sim.profiler import Profiler
from electron_sim.types import Rect, WireKind
from electron_sim.world import World

BOUNDS = Rect(-100.0, -100.0, 100.0, 100.0)


def _state(world):
    snap = world.snapshot()
    return snap.ids.copy(), snap.positions.copy(), snap.velocities.copy(), snap.charges.copy()


def test_opposite_charges_attract_symmetrically():
    """+1 and -1 at rest pull toward each other with equal and opposite velocity."""
    world = World(bounds=BOUNDS, params=SimParams(theta=0.0))
    a = world.add_particle((-5.0, 0.0), charge=1.0)
    b = world.add_particle((5.0, 0.0), charge=-1.0)
    report = world.step(dt=0.01)

    pa, pb = world.get_particle(a), world.get_particle(b)
    assert pa.velocity[0] > 0.0
    assert pb.velocity[0] < 0.0
    assert np.array_equal(pa.velocity, -pb.velocity)
    assert np.array_equal(pa.position, -pb.position)
    assert report.frame == 1
    assert report.interactions == 2
    assert world.time == pytest.approx(0.01)


def test_wire_equalizes_charges_during_step():
    world = World(bounds=BOUNDS)
    world.place_wire([(-10.0, 0.0), (10.0, 0.0)], capture_radius=2.0)
    a = world.add_particle((-3.0, 0.5), charge=2.0)
    b = world.add_particle((3.0, -0.5), charge=-4.0)
    c = world.add_particle((0.0, 50.0), charge=3.0)
    world.step()
    assert world.get_particle(a).charge == -1.0
    assert world.get_particle(b).charge == -1.0
    assert world.get_particle(c).charge == 3.0


def test_same_commands_same_result():
    """Two worlds fed the same commands evolve identically, whatever the thread count."""
    worlds = [
        World.from_commands(uniform_disc(150, seed=3), bounds=BOUNDS, workers=w)
        for w in (1, 1, 4)
    ]
    for world in worlds:
        world.run(5)
    ref = _state(worlds[0])
    for world in worlds[1:]:
        for x, y in zip(ref, _state(world)):
            assert np.array_equal(x, y)


def test_commands_apply_at_step_boundary():
    world = World(bounds=BOUNDS)
    pid = world.add_particle((0.0, 0.0))
    assert pid == 1
    assert world.pending == 1
    assert world.get_particle(pid) is None

    world.step()
    assert world.pending == 0
    assert world.get_particle(pid) is not None


def test_remove_reports_not_found():
    world = World(bounds=BOUNDS)
    pid = world.add_particle((1.0, 1.0))
    wid = world.place_wire([(0.0, 0.0), (5.0, 0.0)])
    # Queued ids can already be removed
    assert world.remove_particle(pid) is True
    assert world.remove_particle(pid) is False
    assert world.remove_particle(999) is False
    assert world.remove_wire(wid) is True
    assert world.remove_wire(wid) is False
    world.apply_pending()
    assert world.particles == {}
    assert world.wires == {}


def test_invalid_commands_leave_world_unchanged():
    world = World(bounds=BOUNDS)
    with pytest.raises(ValidationError):
        world.place_wire([(0.0, 0.0)])
    with pytest.raises(ValidationError):
        world.place_wire([(0.0, 0.0), (1.0, 1.0)], capture_radius=0.0)
    with pytest.raises(ValidationError):
        world.place_wire([(0.0, 0.0), (1.0, 1.0)], kind="superconductor")
    with pytest.raises(ValidationError):
        world.add_particle((500.0, 0.0))
    with pytest.raises(ValidationError):
        world.add_particle((0.0, 0.0), mass=0.0)
    with pytest.raises(ValidationError):
        world.add_particle((float("nan"), 0.0))
    with pytest.raises(ValidationError):
        world.submit("add")
    assert world.pending == 0

    # Rejected commands do not consume ids
    assert world.add_particle((0.0, 0.0)) == 1
    assert world.place_wire([(0.0, 0.0), (1.0, 1.0)]) == 1


def test_wire_variants():
    world = World(bounds=BOUNDS)
    world.place_wire([(-10.0, 0.0), (10.0, 0.0)], kind=WireKind.SOURCE, target_charge=4.0)
    world.add_particle((-2.0, 0.0), charge=-1.0)
    world.add_particle((2.0, 0.0), charge=-1.0)
    world.step()
    assert total_charge(world.particles.values()) == pytest.approx(4.0)

    with pytest.raises(ValidationError):
        world.place_wire([(0.0, 0.0), (1.0, 0.0)], kind="polarity", polarity=0)
    with pytest.raises(ValidationError):
        world.place_wire([(0.0, 0.0), (1.0, 0.0)], kind="resistor", conductance=1.5)


def test_select_region():
    world = World.from_commands(uniform_disc(300, seed=5), bounds=BOUNDS)
    rect = Rect(-20.0, -30.0, 15.0, 10.0)
    expected = {
        pid for pid, p in world.particles.items()
        if rect.x0 <= p.position[0] < rect.x1 and rect.y0 <= p.position[1] < rect.y1
    }
    assert world.select_region(rect) == expected

    with pytest.raises(ValidationError):
        world.select_region(Rect(0.0, 0.0, 0.0, 10.0))
    with pytest.raises(ValidationError):
        world.select_region(Rect(0.0, 0.0, 10.0, 0.0))


def test_select_region_tracks_committed_state():
    world = World(bounds=BOUNDS)
    world.add_particle((1.0, 1.0))
    everything = Rect(-100.0, -100.0, 100.0, 100.0)
    assert world.select_region(everything) == set()
    world.apply_pending()
    assert world.select_region(everything) == {1}
    world.remove_particle(1)
    world.step()
    assert world.select_region(everything) == set()


def test_set_parameter_clamps():
    world = World(bounds=BOUNDS)
    assert world.set_parameter("theta", 5.0) == 2.0
    assert world.set_parameter("maxTreeDepth", 100) == 64
    assert world.set_parameter("damping", -3) == 0.0
    # Not applied before the step boundary
    assert world.params.theta == 0.75
    world.apply_pending()
    assert world.params.theta == 2.0
    assert world.params.max_tree_depth == 64
    assert world.params.damping == 0.0


def test_set_parameter_rejects_bad_input():
    world = World(bounds=BOUNDS)
    with pytest.raises(UnknownParameterError):
        world.set_parameter("gravity", 9.81)
    with pytest.raises(ValidationError):
        world.set_parameter("theta", float("inf"))
    with pytest.raises(ValidationError):
        world.submit(SetParameter("dt", "fast"))
    assert world.pending == 0


def test_degenerate_step_rolls_back():
    """An overflowing force aborts the step and keeps the pre-step state."""
    world = World(bounds=BOUNDS)
    a = world.add_particle((-5.0, 0.0), velocity=(1.0, 0.0), charge=1e200)
    b = world.add_particle((5.0, 0.0), charge=1e200)

    with pytest.raises(NumericDegeneracy) as excinfo:
        world.step()
    assert excinfo.value.phase == "forces"
    assert sorted(excinfo.value.particle_ids) == [a, b]
    assert isinstance(excinfo.value, ArithmeticError)

    # Commands applied before the failure stay applied
    assert set(world.particles) == {a, b}
    assert world.frame == 0
    assert world.time == 0.0
    assert world.tree is None
    assert np.array_equal(world.get_particle(a).position, [-5.0, 0.0])
    assert np.array_equal(world.get_particle(a).velocity, [1.0, 0.0])

    # Removing the culprit lets the world continue
    world.remove_particle(b)
    world.step()
    assert world.frame == 1


def test_step_rejects_bad_dt():
    world = World(bounds=BOUNDS)
    for dt in (0.0, -1.0, float("nan")):
        with pytest.raises(ValidationError):
            world.step(dt)
    assert world.frame == 0


def test_reset_keeps_id_counters():
    world = World.from_commands(two_body(), bounds=BOUNDS)
    world.place_wire([(0.0, 0.0), (1.0, 0.0)])
    world.step()
    world.reset()
    assert world.remove_particle(1) is False
    world.step()
    assert world.particles == {}
    assert world.wires == {}
    # Ids are never reused
    assert world.add_particle((0.0, 0.0)) == 3
    assert world.place_wire([(0.0, 0.0), (1.0, 0.0)]) == 2


def test_remove_wire_purges_captured_particles():
    world = World(bounds=BOUNDS)
    wid = world.place_wire([(-10.0, 0.0), (10.0, 0.0)], capture_radius=2.0)
    near = world.add_particle((0.0, 1.0))
    far = world.add_particle((0.0, 50.0))
    world.apply_pending()

    assert world.remove_wire(wid, purge_particles=True)
    world.apply_pending()
    assert set(world.particles) == {far}
    assert world.remove_particle(near) is False


def test_concurrent_submission_assigns_unique_ids():
    world = World(bounds=BOUNDS)
    results = []
    lock = threading.Lock()

    def worker(seed):
        rng = np.random.default_rng(seed)
        ids = [world.add_particle(tuple(rng.uniform(-90, 90, 2))) for _ in range(50)]
        with lock:
            results.extend(ids)

    threads = [threading.Thread(target=worker, args=(s,)) for s in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(results)) == 400
    assert world.pending == 400
    world.step()
    assert set(world.particles) == set(results)


def test_from_commands():
    world = World.from_commands(
        [AddParticle(position=(1.0, 2.0)), PlaceWire(points=[(0.0, 0.0), (3.0, 0.0)])],
        bounds=BOUNDS,
        params=SimParams(theta=0.5),
    )
    assert world.pending == 0
    assert list(world.particles) == [1]
    assert list(world.wires) == [1]
    assert world.params.theta == 0.5


def test_invalid_world_construction():
    with pytest.raises(ValidationError):
        World(bounds=Rect(0.0, 0.0, 0.0, 10.0))
    with pytest.raises(ValidationError):
        World(bounds=BOUNDS, workers=0)


def test_snapshot_is_a_read_only_copy():
    world = World.from_commands(two_body(), bounds=BOUNDS)
    world.place_wire([(0.0, 20.0), (10.0, 20.0)])
    world.step()
    snap = world.snapshot(include_tree=True)
    assert len(snap) == 2
    assert snap.frame == 1
    assert len(snap.wires) == 1
    assert snap.wires[0].kind is WireKind.CONDUCTOR
    assert len(snap.tree_rects) == len(world.tree)
    with pytest.raises(ValueError):
        snap.positions[0, 0] = 1.0
    with pytest.raises(ValueError):
        snap.wires[0].points[0, 0] = 1.0

    before = snap.positions.copy()
    world.step()
    assert np.array_equal(snap.positions, before)
    assert world.snapshot().tree_rects == ()


def test_profiler_times_every_phase():
    profiler = Profiler()
    world = World.from_commands(two_body(), bounds=BOUNDS, profiler=profiler)
    world.run(3)
    summary = profiler.stats.summary()
    for name in ("commands", "tree", "forces", "conductors", "integrate"):
        assert summary[name]["n"] == 3
        assert summary[name]["total_ms"] >= 0.0


def test_exact_mode_conserves_momentum():
    rng = np.random.default_rng(11)
    world = World(bounds=Rect(-1000.0, -1000.0, 1000.0, 1000.0), params=SimParams(theta=0.0))
    for xy, q in zip(rng.uniform(-50, 50, size=(60, 2)), rng.choice([-1.0, 1.0], size=60)):
        world.add_particle(tuple(xy), charge=q)
    world.run(10)
    p = linear_momentum(world.particles.values())
    assert np.allclose(p, 0.0, atol=1e-9)


def test_conductor_mesh_conserves_charge():
    world = World.from_commands(large_plate(120, Rect(-50.0, -50.0, 50.0, 50.0), seed=2), bounds=BOUNDS)
    assert len(world.wires) == 8
    world.run(5)
    assert total_charge(world.particles.values()) == pytest.approx(-120.0, rel=1e-9)


def test_wires_in_region():
    world = World(bounds=BOUNDS)
    w1 = world.place_wire([(-50.0, 0.0), (-40.0, 0.0)], capture_radius=2.0)
    w2 = world.place_wire([(40.0, 40.0), (50.0, 60.0)], capture_radius=2.0)
    world.apply_pending()
    assert world.wires_in_region(Rect(-45.0, -1.0, -44.0, 1.0)) == [w1]
    assert world.wires_in_region(Rect(51.0, 61.0, 60.0, 70.0)) == [w2]
    assert world.wires_in_region(Rect(0.0, 0.0, 10.0, 10.0)) == []


def test_bounce_on_uneven_max_bound_stays_symmetric():
    """Like charges on opposite corners of uneven bounds get mirrored velocities."""
    world = World(bounds=Rect(0.77, 0.77, 7.043, 7.043), params=SimParams(theta=1.5))
    a = world.add_particle((7.043, 7.043), charge=1.0)
    c = world.add_particle((0.77, 0.77), charge=1.0)
    for _ in range(3):
        world.step(dt=1e-3)
        va, vc = world.get_particle(a).velocity, world.get_particle(c).velocity
        assert np.array_equal(va, -vc)


def test_kinetic_energy_grows_then_damps():
    world = World(bounds=BOUNDS, params=SimParams(theta=0.0))
    world.add_particle((-5.0, 0.0), charge=1.0)
    world.add_particle((5.0, 0.0), charge=-1.0)
    assert kinetic_energy(world.particles.values()) == 0.0

    world.run(20)
    ke = kinetic_energy(world.particles.values())
    assert ke > 0.0

    world.set_parameter("damping", 0.5)
    world.set_parameter("k", 0.0)
    world.step()
    assert kinetic_energy(world.particles.values()) == pytest.approx(0.25 * ke)


def test_profiler_stats_clear():
    profiler = Profiler()
    world = World.from_commands(two_body(), bounds=BOUNDS, profiler=profiler)
    world.run(2)
    profiler.stats.clear()
    assert profiler.stats.summary() == {}
    world.step()
    assert profiler.stats.summary()["forces"]["n"] == 1
