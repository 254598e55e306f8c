import io

from electron_sim.renderer import BufferedRenderer, DebugRenderer, NullRenderer
from electron_sim.presets import three_body
from electron_sim.types import Rect
from electron_sim.world import World


def _world():
    world = World.from_commands(three_body(), bounds=Rect(-100.0, -100.0, 100.0, 100.0))
    world.step()
    return world


def test_debug_renderer_writes_frame():
    out = io.StringIO()
    renderer = DebugRenderer(output=out)
    renderer.render_world(_world().snapshot())
    text = out.getvalue()
    assert text.startswith("=== Frame 1 t=0.0100 ===")
    assert "wire 1 conductor 2 pts r=2.00" in text
    assert text.count("q=-1.00") == 3


def test_debug_renderer_terse():
    out = io.StringIO()
    DebugRenderer(output=out, verbose=False).render_world(_world().snapshot())
    assert " v=(" not in out.getvalue()


def test_buffered_renderer_records_frames():
    world = _world()
    renderer = BufferedRenderer()
    snapshots = []
    for _ in range(3):
        snapshots.append(world.snapshot(include_tree=True))
        renderer.render_world(snapshots[-1])
        world.step()

    assert [f["frame"] for f in renderer.frames] == [1, 2, 3]
    first = renderer.frames[0]
    assert len(first["particles"]) == 3
    assert first["wires"][0]["points"] == [[-40.0, -10.0], [40.0, -10.0]]
    assert first["nodes"] == len(snapshots[0].tree_rects) > 0
    assert {p["id"] for p in first["particles"]} == {1, 2, 3}

    renderer.clear()
    assert renderer.frames == []


def test_null_renderer():
    NullRenderer().render_world(_world().snapshot(include_tree=True))
