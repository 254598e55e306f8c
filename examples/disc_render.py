import sys

from electron_sim import World, Rect
from electron_sim.presets import uniform_disc
from electron_sim.renderer import DebugRenderer

world = World.from_commands(uniform_disc(20, seed=0), bounds=Rect(-200, -200, 200, 200))
renderer = DebugRenderer(output=sys.stdout, verbose=False)

for frame in range(100):
    world.step()
    if frame % 25 == 0:
        renderer.render_world(world.snapshot())

r = world.select_region(Rect(-200, -200, 0, 200))
print(f"{len(r)} of {len(world.particles)} electrons in the left half")
