# MIT License (see LICENSE)
"""
Core simulation components.

This subpackage provides:
    - Force evaluation: Barnes-Hut traversal and the exact reference.
    - Conductors: Charge redistribution along wires.
    - Integrators: Symplectic Euler with boundary reflection.
    - Invariants: Total charge, momentum and kinetic energy.

Typical usage:
    from electron_sim.core import evaluate_forces, redistribute, integrate

    forces, calcs = evaluate_forces(tree, theta=0.75, softening=1.0)
    redistribute(wires, particles)
    for p, f in zip(particles, forces):
        integrate(p, f, dt, bounds)
"""
from .forces import coulomb_pair_force, evaluate_force, evaluate_forces, exact_forces
from .conductors import capture_mask, point_segment_distance, redistribute, redistribute_charges
from .integrators import integrate, reflect_at_bounds, symplectic_euler_step
from .invariants import kinetic_energy, linear_momentum, total_charge

__all__ = [
    # Forces
    "coulomb_pair_force",
    "evaluate_force",
    "evaluate_forces",
    "exact_forces",
    # Conductors
    "capture_mask",
    "point_segment_distance",
    "redistribute",
    "redistribute_charges",
    # Integrators
    "integrate",
    "reflect_at_bounds",
    "symplectic_euler_step",
    # Invariants
    "kinetic_energy",
    "linear_momentum",
    "total_charge",
]
