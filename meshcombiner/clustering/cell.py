from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from meshcombiner.clustering.cluster import Cluster, ClusterUnit, cluster_from_units
from meshcombiner.models.diagnostics import Diagnostics
from meshcombiner.project.schema import ClusteringConfig


CellKey = Tuple[str, int, Tuple[int, int, int]]


def cell_coordinate(position: np.ndarray, cell_size: Sequence[float]) -> Tuple[int, int, int]:
    p = np.asarray(position, dtype=float)
    return (
        int(math.floor(p[0] / float(cell_size[0]))),
        int(math.floor(p[1] / float(cell_size[1]))),
        int(math.floor(p[2] / float(cell_size[2]))),
    )


def bucket_units(units: Sequence[ClusterUnit], cell_size: Sequence[float]) -> Dict[CellKey, List[ClusterUnit]]:
    """Bucket by (material, LOD level, cell); buckets keep first-seen order."""
    buckets: Dict[CellKey, List[ClusterUnit]] = {}
    for u in units:
        key = (u.material, int(u.lod_level), cell_coordinate(u.position, cell_size))
        buckets.setdefault(key, []).append(u)
    return buckets


class CellPartitioner:
    """
    Fixed grid bucketing. Cell size bounds cluster complexity, so results are
    never passed to the budget subdivider.
    """

    name = "cell"
    subdivides = False

    def partition(
        self,
        units: Sequence[ClusterUnit],
        config: ClusteringConfig,
        *,
        has_lod_groups: bool,
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[Cluster]:
        return [
            cluster_from_units(bucket, has_lod_groups=has_lod_groups, diagnostics=diagnostics)
            for bucket in bucket_units(units, config.cell_size).values()
        ]
