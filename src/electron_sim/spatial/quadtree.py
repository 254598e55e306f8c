# MIT License (see LICENSE)
"""
Barnes-Hut quadtree over particle positions and charges.

The tree recursively subdivides a square region into four quadrants until
every occupied region holds a single particle. Each node stores the signed
sum of the charges below it and a charge-magnitude weighted centre, which
lets the force evaluator replace a distant cluster by one point charge.

Layout:
- Nodes live in a flat arena (``SpatialTree.nodes``) and refer to their
  children by integer handle, so the built tree is a plain read-only list
  that several threads can traverse at once.
- Child slots follow the quadrant index ``east + 2 * south`` where
  ``east = x >= cx`` and ``south = y >= cy``. Empty quadrants hold -1.
- At ``max_depth`` a region that still holds several particles becomes a
  BUCKET leaf holding all of them. This bounds the depth for clustered or
  coincident particles at the cost of exact evaluation inside the bucket.
- Sibling quadrants share their split lines exactly and the root's max
  corner is the data's max corner, so a particle on the max bound is inside
  its node. Each node also owns a contiguous slice ``[start, end)`` of
  ``SpatialTree.order``; ``holds`` answers membership from that slice.

Key concepts:
- Aggregate charge: signed sum of descendant charges.
- Aggregate centre: Σ|q|·r / Σ|q|. Weighting by magnitude keeps the centre
  inside the cluster even when the signed charges cancel.

Reference:
    J. Barnes, P. Hut, "A hierarchical O(N log N) force-calculation
    algorithm", Nature 324 (1986).
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Sequence

import numpy as np

from ..types import Particle, Rect

logger = logging.getLogger(__name__)

NO_CHILD = -1


class NodeKind(IntEnum):
    """Tag of a tree node."""
    LEAF = 0     # exactly one particle
    BUCKET = 1   # several particles merged at the depth cap
    BRANCH = 2   # four child slots


@dataclass
class TreeNode:
    """
    A node of the quadtree.

    Attributes:
        kind: LEAF, BUCKET or BRANCH.
        x0, y0: Minimum corner of the node's square.
        x1, y1: Maximum corner. Shared exactly with the neighbouring
                quadrants, so every particle lies inside its node.
        size: Nominal side length, used by the opening criterion.
        depth: Distance from the root (root = 0).
        charge: Signed sum of the charges below this node.
        abs_charge: Sum of charge magnitudes below this node.
        cx, cy: Aggregate centre.
        count: Number of particles below this node.
        children: Four child handles (BRANCH only), -1 for empty quadrants.
        members: Particle indices held by a LEAF or BUCKET.
        start, end: Slice of ``SpatialTree.order`` holding every particle
                    below this node.
    """
    kind: NodeKind
    x0: float
    y0: float
    x1: float
    y1: float
    size: float
    depth: int
    charge: float = 0.0
    abs_charge: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    count: int = 0
    children: tuple[int, int, int, int] = (NO_CHILD, NO_CHILD, NO_CHILD, NO_CHILD)
    members: tuple[int, ...] = ()
    start: int = 0
    end: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.kind is not NodeKind.BRANCH

    def contains_point(self, x: float, y: float) -> bool:
        """Closed test against the node's square."""
        return (
            self.x0 <= x <= self.x1 and
            self.y0 <= y <= self.y1
        )


class SpatialTree:
    """
    Quadtree built once per step from a particle state.

    Particles are addressed by their index in the arrays the tree was built
    from; ``ids`` maps indices back to particle ids.

    Example:
        tree = SpatialTree.build(positions, charges, bounds, ids=ids)
        tree.total_charge          # == charges.sum()
        tree.range_query(Rect(0, 0, 10, 10))
    """

    ROOT = 0

    def __init__(
        self,
        positions: np.ndarray,
        charges: np.ndarray,
        ids: np.ndarray,
        max_depth: int,
    ) -> None:
        self.positions = positions
        self.charges = charges
        self.ids = ids
        self.max_depth = int(max_depth)
        self.nodes: list[TreeNode] = []
        self.merged_buckets = 0
        self.depth = 0
        # Particle indices in build order; every node owns a contiguous slice.
        self.order: list[int] = []
        self.slot: list[int] = [0] * len(positions)
        # Plain-float copies; traversal is scalar code and numpy scalars are slow.
        self.xs: list[float] = positions[:, 0].tolist()
        self.ys: list[float] = positions[:, 1].tolist()
        self.qs: list[float] = charges.tolist()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        positions,
        charges,
        bounds: Rect,
        ids=None,
        max_depth: int = 32,
    ) -> "SpatialTree":
        """
        Build a tree over the given particle state.

        The root square is anchored at the bounds' minimum corner with side
        max(width, height), grown if needed so every particle is inside it.

        Args:
            positions: Particle positions, shape (N, 2).
            charges: Particle charges, shape (N,).
            bounds: World bounds.
            ids: Particle ids, shape (N,). Defaults to 0..N-1.
            max_depth: Depth at which subdivision stops (bucket leaves).

        Returns:
            The built tree. An empty particle set gives a tree with no nodes.
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        charges = np.asarray(charges, dtype=np.float64).reshape(-1)
        if len(charges) != len(positions):
            raise ValueError(
                f"positions and charges differ in length: {len(positions)} != {len(charges)}"
            )
        n = len(positions)
        if ids is None:
            ids = np.arange(n, dtype=np.int64)
        else:
            ids = np.asarray(ids, dtype=np.int64).reshape(-1)

        tree = cls(positions, charges, ids, max_depth)
        if n == 0:
            return tree

        x0, y0, x1, y1, size = _root_square(positions, bounds)
        tree._build(np.arange(n), x0, y0, x1, y1, size, 0)
        return tree

    def _build(
        self,
        idx: np.ndarray,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        size: float,
        depth: int,
    ) -> int:
        """Build the subtree for particle indices idx; return its handle."""
        handle = len(self.nodes)
        start = len(self.order)
        self.nodes.append(None)  # reserved, parents precede children
        self.depth = max(self.depth, depth)

        if len(idx) == 1 or depth >= self.max_depth:
            kind = NodeKind.LEAF if len(idx) == 1 else NodeKind.BUCKET
            if kind is NodeKind.BUCKET:
                self.merged_buckets += 1
                logger.debug(
                    "depth cap %d reached: merged %d particles into one bucket at (%.6g, %.6g)",
                    self.max_depth, len(idx), x0, y0,
                )
            members = tuple(int(i) for i in idx)
            for i in members:
                self.slot[i] = len(self.order)
                self.order.append(i)
            node = TreeNode(
                kind=kind, x0=x0, y0=y0, x1=x1, y1=y1, size=size, depth=depth,
                members=members, start=start, end=len(self.order),
            )
            self._aggregate_members(node)
            self.nodes[handle] = node
            return handle

        half = 0.5 * size
        cx, cy = x0 + half, y0 + half
        px = self.positions[idx, 0]
        py = self.positions[idx, 1]
        quadrant = (px >= cx).astype(np.int64) + 2 * (py >= cy).astype(np.int64)

        # West and east halves share the edge cx exactly; likewise north and south.
        xspan = ((x0, cx), (cx, x1))
        yspan = ((y0, cy), (cy, y1))
        children = []
        for q in range(4):
            sub = idx[quadrant == q]
            if len(sub) == 0:
                children.append(NO_CHILD)
                continue
            (qx0, qx1), (qy0, qy1) = xspan[q & 1], yspan[q >> 1]
            children.append(self._build(sub, qx0, qy0, qx1, qy1, half, depth + 1))

        node = TreeNode(
            kind=NodeKind.BRANCH, x0=x0, y0=y0, x1=x1, y1=y1, size=size, depth=depth,
            children=tuple(children), start=start, end=len(self.order),
        )
        self._aggregate_children(node)
        self.nodes[handle] = node
        return handle

    def _aggregate_members(self, node: TreeNode) -> None:
        qs, xs, ys = self.qs, self.xs, self.ys
        charge = abs_charge = wx = wy = sx = sy = 0.0
        for i in node.members:
            q = qs[i]
            a = abs(q)
            charge += q
            abs_charge += a
            wx += a * xs[i]
            wy += a * ys[i]
            sx += xs[i]
            sy += ys[i]
        n = len(node.members)
        node.charge = charge
        node.abs_charge = abs_charge
        node.count = n
        if abs_charge > 0.0:
            node.cx, node.cy = wx / abs_charge, wy / abs_charge
        else:
            node.cx, node.cy = sx / n, sy / n

    def _aggregate_children(self, node: TreeNode) -> None:
        charge = abs_charge = wx = wy = sx = sy = 0.0
        count = 0
        for h in node.children:
            if h == NO_CHILD:
                continue
            c = self.nodes[h]
            charge += c.charge
            abs_charge += c.abs_charge
            wx += c.abs_charge * c.cx
            wy += c.abs_charge * c.cy
            sx += c.count * c.cx
            sy += c.count * c.cy
            count += c.count
        node.charge = charge
        node.abs_charge = abs_charge
        node.count = count
        if abs_charge > 0.0:
            node.cx, node.cy = wx / abs_charge, wy / abs_charge
        else:
            node.cx, node.cy = sx / count, sy / count

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> TreeNode | None:
        return self.nodes[self.ROOT] if self.nodes else None

    @property
    def particle_count(self) -> int:
        return len(self.positions)

    @property
    def total_charge(self) -> float:
        """Aggregate charge of the root (0 for an empty tree)."""
        root = self.root
        return 0.0 if root is None else root.charge

    def holds(self, node: TreeNode, index: int) -> bool:
        """True if particle index lies below node."""
        return node.start <= self.slot[index] < node.end

    def range_query(self, rect: Rect) -> set[int]:
        """
        Ids of particles inside rect using the half-open rule.

        A particle at (x, y) is selected iff x0 <= x < x1 and y0 <= y < y1.
        Subtrees whose square cannot contain such a point are pruned.
        """
        found: set[int] = set()
        if not self.nodes:
            return found
        xs, ys, ids = self.xs, self.ys, self.ids
        stack = [self.ROOT]
        while stack:
            node = self.nodes[stack.pop()]
            # Particles in a node satisfy x0 <= x <= x1.
            if node.x0 >= rect.x1 or node.x1 < rect.x0:
                continue
            if node.y0 >= rect.y1 or node.y1 < rect.y0:
                continue
            if node.kind is NodeKind.BRANCH:
                stack.extend(h for h in node.children if h != NO_CHILD)
                continue
            for i in node.members:
                if rect.contains(xs[i], ys[i]):
                    found.add(int(ids[i]))
        return found

    def node_rects(self) -> Iterator[tuple[float, float, float]]:
        """Yield (x0, y0, size) of every node, for debug overlays."""
        for node in self.nodes:
            yield (node.x0, node.y0, node.size)

    def leaves(self) -> Iterator[TreeNode]:
        """Yield every LEAF and BUCKET node."""
        for node in self.nodes:
            if node.is_leaf:
                yield node


def build_tree(particles: Sequence[Particle], bounds: Rect, max_depth: int = 32) -> SpatialTree:
    """Build a tree directly from Particle objects (indices follow list order)."""
    n = len(particles)
    positions = np.empty((n, 2), dtype=np.float64)
    charges = np.empty(n, dtype=np.float64)
    ids = np.empty(n, dtype=np.int64)
    for i, p in enumerate(particles):
        positions[i] = p.position
        charges[i] = p.charge
        ids[i] = p.id
    return SpatialTree.build(positions, charges, bounds, ids=ids, max_depth=max_depth)


def _root_square(positions: np.ndarray, bounds: Rect) -> tuple[float, float, float, float, float]:
    """
    Square covering both the bounds and every particle.

    Returns (x0, y0, x1, y1, size). The max corner is taken from the data
    rather than recomputed as x0 + size, which can round below it.
    """
    lo = np.minimum(positions.min(axis=0), (bounds.x0, bounds.y0))
    hi = np.maximum(positions.max(axis=0), (bounds.x1, bounds.y1))
    size = float(max(hi[0] - lo[0], hi[1] - lo[1]))
    if size <= 0.0:
        size = 1.0
    x1 = max(float(lo[0]) + size, float(hi[0]))
    y1 = max(float(lo[1]) + size, float(hi[1]))
    return float(lo[0]), float(lo[1]), x1, y1, size
