from electron_sim import World, Rect, WireKind

world = World(bounds=Rect(-100, -100, 100, 100))

wire = world.place_wire([(-40, 0), (0, 20), (40, 0)], kind=WireKind.CONDUCTOR, capture_radius=3.0)
ids = [
    world.add_particle((-30, 4), charge=+3.0),
    world.add_particle((0, 21), charge=-1.0),
    world.add_particle((35, 1), charge=-5.0),
    world.add_particle((0, -60), charge=-1.0),  # not on the wire
]

world.step()
for pid in ids:
    print(pid, "q =", world.get_particle(pid).charge)

# Pull the wire out together with everything attached to it
world.remove_wire(wire, purge_particles=True)
world.step()
print("left:", sorted(world.particles))
