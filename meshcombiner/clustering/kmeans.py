from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from meshcombiner.clustering.cluster import Cluster, ClusterUnit, cluster_from_units
from meshcombiner.models.diagnostics import Diagnostics
from meshcombiner.project.schema import ClusteringConfig


def group_by_material(units: Sequence[ClusterUnit]) -> Dict[str, List[ClusterUnit]]:
    out: Dict[str, List[ClusterUnit]] = {}
    for u in units:
        out.setdefault(u.material, []).append(u)
    return out


def kmeans_assign(
    positions: np.ndarray,
    k: int,
    iterations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Lloyd iterations from uniform-random centroids inside the points' bounding box.

    Returns the assignment from the final iteration. Ties go to the lowest
    centroid index; centroids that lose all points keep their position.
    """
    pts = np.asarray(positions, dtype=float).reshape(-1, 3)
    lo, hi = pts.min(axis=0), pts.max(axis=0)
    centroids = rng.uniform(lo, hi, size=(int(k), 3))
    assignment = np.zeros(pts.shape[0], dtype=np.int64)
    for _ in range(max(1, int(iterations))):
        d2 = ((pts[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
        assignment = np.argmin(d2, axis=1)
        for c in range(centroids.shape[0]):
            mask = assignment == c
            if np.any(mask):
                centroids[c] = pts[mask].mean(axis=0)
    return assignment


class KMeansPartitioner:
    name = "kmeans"
    subdivides = True

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self._rng = rng

    def partition(
        self,
        units: Sequence[ClusterUnit],
        config: ClusteringConfig,
        *,
        has_lod_groups: bool,
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[Cluster]:
        rng = self._rng if self._rng is not None else np.random.default_rng(config.kmeans_seed)
        clusters: List[Cluster] = []
        # K centroids per material.
        for group in group_by_material(units).values():
            positions = np.array([u.position for u in group])
            assignment = kmeans_assign(positions, config.k_clusters, config.kmeans_iterations, rng)
            for c in range(int(config.k_clusters)):
                members = [u for u, a in zip(group, assignment) if int(a) == c]
                if members:
                    clusters.append(cluster_from_units(members, has_lod_groups=has_lod_groups, diagnostics=diagnostics))
        return clusters
