"""
Cluster model shared by the partitioners, the budget subdivider and the aggregator.

A ``ClusterUnit`` is the smallest thing a partitioner may move: usually one
object at its reconciled LOD level, or a whole LOD group (for one material)
when groups are kept intact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from meshcombiner.models.diagnostics import MATERIAL_MISMATCH, Diagnostics
from meshcombiner.scene.objects import NO_LOD, RenderableObject


LOG = logging.getLogger(__name__)

# Added to the enclosing radius so single-member clusters still have a visible extent.
GIZMO_PADDING = 0.5


@dataclass(frozen=True, eq=False)
class ClusterUnit:
    entries: Tuple[Tuple[int, RenderableObject], ...]
    position: np.ndarray
    material: str
    lod_level: int = NO_LOD
    group: Optional[str] = None

    @classmethod
    def single(cls, obj: RenderableObject, level: int) -> "ClusterUnit":
        return cls(entries=((int(level), obj),), position=obj.position, material=obj.material, lod_level=int(level))

    @property
    def objects(self) -> List[RenderableObject]:
        return [obj for _, obj in self.entries]

    @property
    def triangle_count(self) -> int:
        return sum(obj.triangle_count for _, obj in self.entries)


class Cluster:
    """
    Same-material group of objects, bucketed per LOD level.

    ``center`` is the mean of member positions and is recomputed on every insert.
    """

    def __init__(
        self,
        seed: ClusterUnit,
        *,
        has_lod_groups: bool = False,
        is_subdivided: bool = False,
        depth: int = 0,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.material: str = seed.material
        self.has_lod_groups = bool(has_lod_groups)
        self.is_subdivided = bool(is_subdivided)
        self.depth = int(depth)
        self.levels: Dict[int, List[RenderableObject]] = {}
        self.units: List[ClusterUnit] = []
        self.violations: List[str] = []
        self.center = np.zeros(3)
        self.triangle_count = 0
        self._diagnostics = diagnostics
        self.add(seed)

    def add(self, unit: ClusterUnit) -> bool:
        mismatched = [obj for _, obj in unit.entries if obj.material != self.material]
        if unit.material != self.material or mismatched:
            names = [obj.name for obj in mismatched] or [obj.name for obj in unit.objects]
            message = f"Rejected {names} with material {unit.material!r} from cluster of material {self.material!r}"
            if self._diagnostics is not None:
                self._diagnostics.warn(MATERIAL_MISMATCH, message, objects=names, cluster_material=self.material)
            else:
                LOG.warning(message)
            return False
        self.units.append(unit)
        for level, obj in unit.entries:
            self.levels.setdefault(level, []).append(obj)
            self.triangle_count += obj.triangle_count
        self._recalculate_center()
        return True

    def _recalculate_center(self) -> None:
        positions = np.array([obj.position for obj in self.members()])
        self.center = positions.mean(axis=0)

    def members(self) -> List[RenderableObject]:
        return [obj for unit in self.units for _, obj in unit.entries]

    def __iter__(self) -> Iterator[RenderableObject]:
        return iter(self.members())

    def __len__(self) -> int:
        return sum(len(unit.entries) for unit in self.units)

    @property
    def radius(self) -> float:
        """Enclosing radius around ``center`` plus ``GIZMO_PADDING``."""
        d = np.linalg.norm(np.array([obj.position for obj in self.members()]) - self.center, axis=1)
        return float(d.max()) + GIZMO_PADDING

    @property
    def lod_levels(self) -> List[int]:
        return sorted(lvl for lvl in self.levels if lvl != NO_LOD)

    @property
    def max_lod_level(self) -> int:
        lv = self.lod_levels
        return lv[-1] if lv else NO_LOD

    def over_budget(self, limit: int) -> bool:
        return self.triangle_count > int(limit)

    def __repr__(self) -> str:
        kind = f"sub{self.depth}" if self.is_subdivided else "main"
        return f"Cluster(material={self.material!r}, members={len(self)}, triangles={self.triangle_count}, {kind})"


def cluster_from_units(
    units: Sequence[ClusterUnit],
    *,
    has_lod_groups: bool,
    is_subdivided: bool = False,
    depth: int = 0,
    diagnostics: Optional[Diagnostics] = None,
) -> Cluster:
    if not units:
        raise ValueError("cluster_from_units requires at least one unit")
    cluster = Cluster(units[0], has_lod_groups=has_lod_groups, is_subdivided=is_subdivided, depth=depth, diagnostics=diagnostics)
    for u in units[1:]:
        cluster.add(u)
    return cluster
