# MIT License (see LICENSE)
"""
Spatial acceleration structures.

This subpackage provides:
    - SpatialTree: Barnes-Hut quadtree rebuilt every step, also used for
      rectangle selection.
    - TreeNode, NodeKind: Arena node and its tag.

Typical usage:
    from electron_sim.spatial import SpatialTree

    tree = SpatialTree.build(positions, charges, bounds)
    inside = tree.range_query(Rect(0, 0, 50, 50))
"""
from .quadtree import SpatialTree, TreeNode, NodeKind, NO_CHILD, build_tree

__all__ = [
    "SpatialTree",
    "TreeNode",
    "NodeKind",
    "NO_CHILD",
    "build_tree",
]
