"""
LOD reconciliation: decide each object's LOD level and how LOD-bearing and
plain objects are fed to the partitioner.

Policies:

* ``separate`` - LOD members and plain objects are partitioned independently.
* ``unify`` - everything is partitioned together as LOD-bearing; plain objects
  keep the ``NO_LOD`` level and are merged into every rung later.
* ``preserve`` - each LOD group (per material) moves as one unit positioned at
  the group's bounding-box center; plain objects are partitioned separately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from meshcombiner.clustering.cluster import ClusterUnit
from meshcombiner.geometry.bounds import merge_aabbs
from meshcombiner.models.diagnostics import LOD_DUPLICATE, Diagnostics
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject


@dataclass(frozen=True)
class UnitBatch:
    units: Tuple[ClusterUnit, ...]
    has_lod_groups: bool


@dataclass(frozen=True)
class LODReconciliation:
    batches: Tuple[UnitBatch, ...]
    levels: Dict[RenderableObject, int]
    groups: Dict[RenderableObject, str]
    max_lod_level: int


def assign_levels(
    objects: Sequence[RenderableObject],
    lod_groups: Sequence[LODGroupDescriptor] = (),
    diagnostics: Optional[Diagnostics] = None,
) -> Tuple[Dict[RenderableObject, int], Dict[RenderableObject, str]]:
    """
    Level per pool object; the first descriptor slot holding an object wins.

    Objects outside every descriptor keep their own ``lod_level``. Descriptor
    entries that are not in the pool (filtered out upstream) are ignored.
    """
    pool = set(objects)
    levels: Dict[RenderableObject, int] = {}
    groups: Dict[RenderableObject, str] = {}
    for desc in lod_groups:
        for level, slot in enumerate(desc.levels):
            for obj in slot:
                if obj not in pool:
                    continue
                if obj in levels:
                    if diagnostics is not None:
                        diagnostics.info(
                            LOD_DUPLICATE,
                            f"{obj.name!r} already placed at LOD {levels[obj]} of {groups[obj]!r}; "
                            f"ignoring LOD {level} of {desc.name!r}.",
                            object=obj.name,
                            kept_level=levels[obj],
                            ignored_level=level,
                        )
                    continue
                levels[obj] = level
                groups[obj] = desc.name
    for obj in objects:
        if obj not in levels:
            levels[obj] = int(obj.lod_level) if obj.lod_level >= 0 else NO_LOD
    return levels, groups


def _group_units(
    objects: Sequence[RenderableObject],
    levels: Dict[RenderableObject, int],
    groups: Dict[RenderableObject, str],
) -> List[ClusterUnit]:
    members: Dict[str, List[RenderableObject]] = {}
    for obj in objects:
        name = groups.get(obj)
        if name is not None:
            members.setdefault(name, []).append(obj)
    units: List[ClusterUnit] = []
    for name, objs in members.items():
        center = merge_aabbs([o.world_bounds() for o in objs]).center
        by_material: Dict[str, List[RenderableObject]] = {}
        for o in sorted(objs, key=lambda o: levels[o]):
            by_material.setdefault(o.material, []).append(o)
        for material, mat_objs in by_material.items():
            units.append(
                ClusterUnit(
                    entries=tuple((levels[o], o) for o in mat_objs),
                    position=center.copy(),
                    material=material,
                    lod_level=min(levels[o] for o in mat_objs),
                    group=name,
                )
            )
    return units


def reconcile(
    objects: Sequence[RenderableObject],
    lod_groups: Sequence[LODGroupDescriptor] = (),
    policy: str = "separate",
    diagnostics: Optional[Diagnostics] = None,
) -> LODReconciliation:
    levels, groups = assign_levels(objects, lod_groups, diagnostics)

    lod_objs = [o for o in objects if levels[o] != NO_LOD]
    plain_objs = [o for o in objects if levels[o] == NO_LOD]

    batches: List[UnitBatch] = []
    if policy == "unify":
        batches.append(UnitBatch(tuple(ClusterUnit.single(o, levels[o]) for o in objects), True))
    elif policy == "separate":
        batches.append(UnitBatch(tuple(ClusterUnit.single(o, levels[o]) for o in lod_objs), True))
        batches.append(UnitBatch(tuple(ClusterUnit.single(o, NO_LOD) for o in plain_objs), False))
    elif policy == "preserve":
        units = _group_units(lod_objs, levels, groups)
        # Native LOD objects outside any descriptor move on their own.
        units.extend(ClusterUnit.single(o, levels[o]) for o in lod_objs if o not in groups)
        batches.append(UnitBatch(tuple(units), True))
        batches.append(UnitBatch(tuple(ClusterUnit.single(o, NO_LOD) for o in plain_objs), False))
    else:
        raise ValueError(f"Unknown LOD handling policy: {policy!r}")

    max_level = max((lvl for lvl in levels.values() if lvl != NO_LOD), default=NO_LOD)
    for desc in lod_groups:
        if any(o in levels for o in desc.objects()):
            max_level = max(max_level, desc.max_level)

    return LODReconciliation(
        batches=tuple(b for b in batches if b.units),
        levels=levels,
        groups=groups,
        max_lod_level=max_level,
    )


def level_members(cluster_levels: Dict[int, List[RenderableObject]], max_level: int) -> Dict[int, List[RenderableObject]]:
    """
    Members to merge per LOD rung ``0..max_level``.

    A rung with no members reuses the nearest lower populated rung; ``NO_LOD``
    members join every rung. Rungs below the first populated one stay empty
    unless ``NO_LOD`` members exist.
    """
    plain = list(cluster_levels.get(NO_LOD, []))
    out: Dict[int, List[RenderableObject]] = {}
    last: Optional[List[RenderableObject]] = None
    for level in range(0, max(0, int(max_level)) + 1):
        own = cluster_levels.get(level)
        if own:
            last = list(own)
        members = (list(last) if last is not None else []) + plain
        if members:
            out[level] = members
    return out
