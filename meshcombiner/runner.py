from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from meshcombiner.clustering.cluster import Cluster
from meshcombiner.clustering.lod import reconcile
from meshcombiner.clustering.partition import get_partitioner
from meshcombiner.clustering.subdivide import TRIANGLE_LIMIT_EXCEEDED, subdivide_cluster
from meshcombiner.combine.aggregator import CombineOutcome, combine_cluster
from meshcombiner.models.diagnostics import CELL_OVER_BUDGET, Diagnostics
from meshcombiner.project.schema import ClusteringConfig, CombinerConfig, ConfigurationError, PostProcessConfig
from meshcombiner.scene.filters import filter_objects
from meshcombiner.scene.objects import LODGroupDescriptor, RenderableObject


LOG = logging.getLogger(__name__)


class RunnerError(Exception):
    pass


@dataclass
class ClusterRun:
    clusters: List[Cluster]
    max_lod_level: int
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass(frozen=True)
class GroupPlan:
    name: str
    pivot: np.ndarray
    sources: tuple


@dataclass(frozen=True)
class ClusterRow:
    index: int
    material: str
    objects: int
    triangles: int
    over_limit: bool
    subdivided: bool
    depth: int


@dataclass(frozen=True)
class ClusterSummary:
    total_objects: int
    total_triangles: int
    cluster_count: int
    rows: List[ClusterRow]

    @property
    def over_limit_count(self) -> int:
        return sum(1 for r in self.rows if r.over_limit)


def build_clusters(
    objects: Sequence[RenderableObject],
    config: ClusteringConfig,
    lod_groups: Sequence[LODGroupDescriptor] = (),
    diagnostics: Optional[Diagnostics] = None,
    rng: Optional[np.random.Generator] = None,
) -> ClusterRun:
    """
    Run LOD reconciliation, partitioning and budget subdivision over one object pool.

    Raises ConfigurationError before any partitioning when the configuration
    or the pool is unusable.
    """
    config.validate()
    if not objects:
        raise ConfigurationError("Input pool is empty; nothing to cluster.")
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    rec = reconcile(objects, lod_groups, config.lod_handling, diagnostics)
    partitioner = get_partitioner(config.algorithm, rng=rng)
    clusters: List[Cluster] = []
    for batch in rec.batches:
        initial = partitioner.partition(batch.units, config, has_lod_groups=batch.has_lod_groups, diagnostics=diagnostics)
        for cluster in initial:
            if partitioner.subdivides:
                clusters.extend(subdivide_cluster(cluster, config, diagnostics))
            elif cluster.over_budget(config.triangle_limit):
                cluster.violations.append(TRIANGLE_LIMIT_EXCEEDED)
                diagnostics.info(
                    CELL_OVER_BUDGET,
                    f"{cluster!r} exceeds the triangle limit; cell clusters are not subdivided.",
                    triangles=cluster.triangle_count,
                    limit=config.triangle_limit,
                )
                clusters.append(cluster)
            else:
                clusters.append(cluster)
    LOG.info("Built %d cluster(s) from %d object(s) using %s", len(clusters), len(objects), config.algorithm)
    return ClusterRun(clusters=clusters, max_lod_level=rec.max_lod_level, diagnostics=diagnostics)


def group_name(parent_name: str, index: int, cluster: Cluster) -> str:
    return f"{parent_name}_Group{index + 1}_{cluster.material}"


def combine_clusters(
    run: ClusterRun,
    post: Optional[PostProcessConfig] = None,
    parent_name: str = "ExampleGroup",
) -> List[CombineOutcome]:
    """Combine every cluster; one cluster's failure never stops the others."""
    outcomes: List[CombineOutcome] = []
    for i, cluster in enumerate(run.clusters):
        name = group_name(parent_name, i, cluster)
        LOG.debug("Combining %d object(s) into %s", len(cluster), name)
        outcomes.append(
            combine_cluster(
                cluster,
                post=post,
                max_lod_level=run.max_lod_level if cluster.has_lod_groups else None,
                diagnostics=run.diagnostics,
                name=name,
            )
        )
    return outcomes


def plan_groups(clusters: Sequence[Cluster], parent_name: str = "ExampleGroup") -> List[GroupPlan]:
    """Grouping without combination: one pivot at each cluster center."""
    return [
        GroupPlan(
            name=f"{parent_name}_Group{i + 1}",
            pivot=c.center.copy(),
            sources=tuple(o.source if o.source is not None else o.name for o in c.members()),
        )
        for i, c in enumerate(clusters)
    ]


def summarize(clusters: Sequence[Cluster], triangle_limit: int) -> ClusterSummary:
    rows = [
        ClusterRow(
            index=i + 1,
            material=c.material,
            objects=len(c),
            triangles=c.triangle_count,
            over_limit=c.over_budget(triangle_limit),
            subdivided=c.is_subdivided,
            depth=c.depth,
        )
        for i, c in enumerate(clusters)
    ]
    return ClusterSummary(
        total_objects=sum(r.objects for r in rows),
        total_triangles=sum(r.triangles for r in rows),
        cluster_count=len(rows),
        rows=rows,
    )


def list_materials(objects: Sequence[RenderableObject]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for o in objects:
        counts[o.material] = counts.get(o.material, 0) + 1
    return counts


def run_pipeline(
    objects: Sequence[RenderableObject],
    config: CombinerConfig,
    lod_groups: Sequence[LODGroupDescriptor] = (),
    rng: Optional[np.random.Generator] = None,
) -> tuple[ClusterRun, List[CombineOutcome]]:
    """Filter, cluster and combine in one call."""
    config.validate()
    pool = filter_objects(objects, config.filters)
    run = build_clusters(pool, config.clustering, lod_groups, rng=rng)
    return run, combine_clusters(run, config.post, config.parent_name)
