from electron_sim import World, Rect, SimParams

world = World(bounds=Rect(-50, -50, 50, 50), params=SimParams(theta=0.0, dt=1e-3))

# Opposite charges released at rest pull toward each other; equal and opposite velocities
a = world.add_particle((-5.0, 0.0), charge=+1.0)
b = world.add_particle((+5.0, 0.0), charge=-1.0)

for _ in range(2000):
    world.step()

pa, pb = world.get_particle(a), world.get_particle(b)
print("a pos", pa.position, "v", pa.velocity)
print("b pos", pb.position, "v", pb.velocity)
