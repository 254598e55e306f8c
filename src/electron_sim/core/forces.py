# MIT License (see LICENSE)
"""
Coulomb force evaluation over the Barnes-Hut tree.

Every interaction uses the same softened kernel:

    F_ij = k * q_i * q_j / max(d², ε²) * (r_i - r_j) / d

so like charges repel and unlike charges attract. Clamping d² from below
(instead of adding ε²) keeps the force exact beyond the softening length.
Coincident distinct particles (d = 0) exert no force on each other.

Key concepts:
- A BRANCH node is replaced by a point charge at its aggregate centre when
  size / distance < theta and the target particle is not below it. Membership
  is read from the node's slice of the build order.
- LEAF and BUCKET nodes are always evaluated particle by particle.
- theta = 0 opens every branch, which gives exact direct summation.

Complexity: O(N log N) for roughly uniform particles and theta > 0,
O(N²) at theta = 0. ``exact_forces`` is the vectorized O(N²) reference.
"""
from __future__ import annotations
import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from ..constants import DEFAULT_K
from ..spatial.quadtree import SpatialTree, NodeKind, NO_CHILD


def coulomb_pair_force(
    dx: float,
    dy: float,
    qq: float,
    k: float,
    eps2: float,
) -> tuple[float, float]:
    """
    Force on a charge displaced by (dx, dy) from another charge.

    Args:
        dx, dy: Separation vector r_target - r_source.
        qq: Product of the two charges.
        k: Coulomb constant.
        eps2: Squared softening length.

    Returns:
        (Fx, Fy). Swapping the two charges negates dx, dy and leaves qq
        unchanged, so the returned force is exactly negated.
    """
    d2 = dx * dx + dy * dy
    if d2 == 0.0:
        return 0.0, 0.0
    d = math.sqrt(d2)
    s = k * qq / (d2 if d2 > eps2 else eps2) / d
    return s * dx, s * dy


def evaluate_force(
    tree: SpatialTree,
    index: int,
    theta: float,
    softening: float,
    k: float = DEFAULT_K,
) -> np.ndarray:
    """
    Approximate net Coulomb force on one particle of the tree.

    Args:
        tree: Tree built from the current particle state.
        index: Index of the target particle in the tree's arrays.
        theta: Opening threshold (node size / distance).
        softening: Softening length ε.
        k: Coulomb constant.

    Returns:
        Force vector [Fx, Fy].
    """
    fx, fy, _ = _accumulate(tree, index, theta, softening * softening, k)
    return np.array([fx, fy], dtype=np.float64)


def _accumulate(
    tree: SpatialTree,
    index: int,
    theta: float,
    eps2: float,
    k: float,
) -> tuple[float, float, int]:
    nodes = tree.nodes
    if not nodes:
        return 0.0, 0.0, 0
    xs, ys, qs = tree.xs, tree.ys, tree.qs
    px, py, q = xs[index], ys[index], qs[index]
    si = tree.slot[index]
    if q == 0.0:
        return 0.0, 0.0, 0

    theta2 = theta * theta
    fx = fy = 0.0
    calcs = 0
    stack = [SpatialTree.ROOT]
    while stack:
        node = nodes[stack.pop()]
        if node.kind is NodeKind.BRANCH:
            dx = px - node.cx
            dy = py - node.cy
            # s / d < theta, written without the division
            far = node.size * node.size < theta2 * (dx * dx + dy * dy)
            if far and not node.start <= si < node.end:
                gx, gy = coulomb_pair_force(dx, dy, q * node.charge, k, eps2)
                fx += gx
                fy += gy
                calcs += 1
            else:
                # Reversed so children pop in quadrant order
                for h in reversed(node.children):
                    if h != NO_CHILD:
                        stack.append(h)
            continue

        for j in node.members:
            if j == index:
                continue
            gx, gy = coulomb_pair_force(px - xs[j], py - ys[j], q * qs[j], k, eps2)
            fx += gx
            fy += gy
            calcs += 1
    return fx, fy, calcs


def evaluate_forces(
    tree: SpatialTree,
    theta: float,
    softening: float,
    k: float = DEFAULT_K,
    workers: int = 1,
) -> tuple[np.ndarray, int]:
    """
    Net force on every particle of the tree.

    The tree is read-only during evaluation, so with workers > 1 the
    particles are split into contiguous chunks evaluated on a thread pool.
    Each particle's force is computed independently in a fixed order, so the
    result does not depend on the number of workers.

    Args:
        tree: Tree built from the current particle state.
        theta: Opening threshold.
        softening: Softening length ε.
        k: Coulomb constant.
        workers: Number of threads (1 = evaluate inline).

    Returns:
        Tuple (forces, interactions): forces has shape (N, 2) and is
        indexed like the tree's arrays.
    """
    n = tree.particle_count
    forces = np.zeros((n, 2), dtype=np.float64)
    if n == 0:
        return forces, 0
    eps2 = softening * softening

    def run(lo: int, hi: int) -> int:
        calcs = 0
        for i in range(lo, hi):
            fx, fy, c = _accumulate(tree, i, theta, eps2, k)
            forces[i, 0] = fx
            forces[i, 1] = fy
            calcs += c
        return calcs

    if workers <= 1 or n < 2:
        return forces, run(0, n)

    chunk = -(-n // workers)
    bounds = [(lo, min(n, lo + chunk)) for lo in range(0, n, chunk)]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        # Leaving the with block joins every chunk before redistribution
        total = sum(pool.map(lambda b: run(*b), bounds))
    return forces, total


def exact_forces(
    positions: np.ndarray,
    charges: np.ndarray,
    softening: float,
    k: float = DEFAULT_K,
) -> np.ndarray:
    """
    Direct O(N²) summation of the softened Coulomb force.

    Vectorized reference used to measure the tree approximation error.

    Args:
        positions: Shape (N, 2).
        charges: Shape (N,).
        softening: Softening length ε.
        k: Coulomb constant.

    Returns:
        Forces of shape (N, 2).
    """
    positions = np.asarray(positions, dtype=np.float64)
    charges = np.asarray(charges, dtype=np.float64)
    r = positions[:, None, :] - positions[None, :, :]
    d2 = np.einsum("ijk,ijk->ij", r, r)
    d = np.sqrt(d2)
    denom = np.maximum(d2, softening * softening) * d
    qq = charges[:, None] * charges[None, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        scale = np.where(d2 > 0.0, k * qq / denom, 0.0)
    return np.einsum("ij,ijk->ik", scale, r)
