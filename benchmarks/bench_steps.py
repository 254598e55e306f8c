"""
Microbenchmark: time per step vs number of particles and theta.
Run:
  python benchmarks/bench_steps.py
"""
import time
from electron_sim.presets import uniform_disc
from electron_sim.params import SimParams
from electron_sim.profiler import Profiler
from electron_sim.types import Rect
from electron_sim.world import World

def run(n: int, theta: float, steps: int = 20, workers: int = 1):
    prof = Profiler()
    world = World.from_commands(
        uniform_disc(n, seed=12345),  # determinism (no randomness elsewhere)
        bounds=Rect(-400.0, -400.0, 400.0, 400.0),
        params=SimParams(theta=theta, dt=0.01),
        workers=workers,
        profiler=prof,
    )

    # warmup
    for _ in range(3):
        world.step()
    prof.stats.clear()

    interactions = 0
    t0 = time.perf_counter()
    for _ in range(steps):
        interactions += world.step().interactions
    t1 = time.perf_counter()

    per_step = (t1 - t0) / steps
    return per_step, interactions / steps, prof.stats.summary()

if __name__ == "__main__":
    for n in [100, 500, 1000, 2000]:
        for theta in [0.0, 0.5, 1.0]:
            if theta == 0.0 and n > 1000:
                continue  # direct summation gets slow
            per_step, calcs, summary = run(n, theta)
            print(f"N={n:5d} theta={theta:.1f}  step={1e3*per_step:9.3f} ms  calcs/step={calcs:10.0f}")
            # print top sections
            for k in ["tree", "forces", "conductors", "integrate"]:
                if k in summary:
                    print("   ", k, f"{summary[k]['mean_ms']:.3f} ms")
        print()
