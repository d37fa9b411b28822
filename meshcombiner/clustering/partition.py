from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

import numpy as np

from meshcombiner.clustering.cell import CellPartitioner
from meshcombiner.clustering.cluster import Cluster, ClusterUnit
from meshcombiner.clustering.kmeans import KMeansPartitioner
from meshcombiner.clustering.proximity import ProximityPartitioner
from meshcombiner.models.diagnostics import Diagnostics
from meshcombiner.project.schema import ClusteringConfig, ConfigurationError


class Partitioner(Protocol):
    name: str
    subdivides: bool

    def partition(
        self,
        units: Sequence[ClusterUnit],
        config: ClusteringConfig,
        *,
        has_lod_groups: bool,
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[Cluster]: ...


_PARTITIONERS: Dict[str, type] = {
    "proximity": ProximityPartitioner,
    "kmeans": KMeansPartitioner,
    "cell": CellPartitioner,
}


def get_partitioner(algorithm: str, rng: Optional[np.random.Generator] = None) -> Partitioner:
    cls = _PARTITIONERS.get(algorithm)
    if cls is None:
        raise ConfigurationError(f"Unknown clustering algorithm: {algorithm!r}")
    if cls is KMeansPartitioner:
        return KMeansPartitioner(rng=rng)
    return cls()
