from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from meshcombiner.clustering.cluster import Cluster, ClusterUnit, cluster_from_units
from meshcombiner.models.diagnostics import Diagnostics
from meshcombiner.project.schema import ClusteringConfig


def seed_and_absorb(
    units: Sequence[ClusterUnit],
    radius: float,
    *,
    match_material: bool = True,
) -> List[List[ClusterUnit]]:
    """
    Greedy grouping: take the first remaining unit as seed and absorb every
    remaining unit within ``radius`` of the seed (not of absorbed members).

    Absorption follows pool order; the returned groups cover every input once.
    """
    pool = list(units)
    r = float(radius)
    groups: List[List[ClusterUnit]] = []
    while pool:
        seed = pool.pop(0)
        group = [seed]
        remaining: List[ClusterUnit] = []
        for cand in pool:
            near = float(np.linalg.norm(cand.position - seed.position)) <= r
            if near and (not match_material or cand.material == seed.material):
                group.append(cand)
            else:
                remaining.append(cand)
        pool = remaining
        groups.append(group)
    return groups


class ProximityPartitioner:
    name = "proximity"
    subdivides = True

    def partition(
        self,
        units: Sequence[ClusterUnit],
        config: ClusteringConfig,
        *,
        has_lod_groups: bool,
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[Cluster]:
        return [
            cluster_from_units(g, has_lod_groups=has_lod_groups, diagnostics=diagnostics)
            for g in seed_and_absorb(units, config.grouping_radius, match_material=True)
        ]
