# MIT License (see LICENSE)
"""
Selection state held by the UI layer.

The World never stores a selection; it only answers select_region queries.
A Selection keeps the ids chosen by the last rectangle drag so the UI can
highlight or delete them.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import numpy as np

from .core.conductors import capture_mask
from .types import Rect

if TYPE_CHECKING:
    from .world import World


@dataclass
class Selection:
    """
    Particles and wires picked by a rectangle.

    Attributes:
        particle_ids: Ids of selected particles.
        wire_ids: Ids of wires overlapping the rectangle.
    """
    particle_ids: set[int] = field(default_factory=set)
    wire_ids: list[int] = field(default_factory=list)

    def select(self, world: "World", corner_a: Sequence[float], corner_b: Sequence[float]) -> set[int]:
        """
        Replace the selection with everything in the dragged rectangle.

        Corners may be given in any order.

        Raises:
            ValidationError: If the rectangle has zero area.
        """
        rect = Rect.from_corners(corner_a, corner_b)
        self.particle_ids = world.select_region(rect)
        self.wire_ids = world.wires_in_region(rect)
        return self.particle_ids

    def deselect_all(self) -> None:
        self.particle_ids = set()
        self.wire_ids = []

    def delete_from(self, world: "World") -> int:
        """
        Queue removal of the selection.

        Selected wires are removed together with the particles they capture.
        Selected particles captured by one of those wires go with the wire
        and get no removal command of their own.

        Returns:
            The number of removal commands queued that found their target.
        """
        purged: set[int] = set()
        for wid in self.wire_ids:
            wire = world.get_wire(wid)
            if wire is None:
                continue
            ids = sorted(self.particle_ids - purged)
            live = [world.get_particle(pid) for pid in ids]
            known = [(pid, p.position) for pid, p in zip(ids, live) if p is not None]
            if known:
                mask = capture_mask(wire, np.array([pos for _, pos in known]))
                purged.update(pid for (pid, _), hit in zip(known, mask) if hit)

        found = 0
        for wid in self.wire_ids:
            found += world.remove_wire(wid, purge_particles=True)
        for pid in sorted(self.particle_ids - purged):
            found += world.remove_particle(pid)
        self.deselect_all()
        return found

    def __len__(self) -> int:
        return len(self.particle_ids)

    def __contains__(self, particle_id: int) -> bool:
        return particle_id in self.particle_ids
