from __future__ import annotations

from typing import List, Optional

from meshcombiner.clustering.cluster import Cluster, cluster_from_units
from meshcombiner.clustering.proximity import seed_and_absorb
from meshcombiner.models.diagnostics import DEPTH_EXHAUSTED, Diagnostics
from meshcombiner.project.schema import ClusteringConfig


TRIANGLE_LIMIT_EXCEEDED = "triangle_limit_exceeded"


def subdivide_cluster(
    cluster: Cluster,
    config: ClusteringConfig,
    diagnostics: Optional[Diagnostics] = None,
) -> List[Cluster]:
    """
    Split an over-budget cluster until every leaf is within ``triangle_limit``
    or sits at ``max_recursion_depth``.

    Splits at depth ``d`` seed with ``config.subgroup_radius_at(d)``. Leaves are
    returned in depth-first order, matching the recursive formulation.
    """
    limit = int(config.triangle_limit)
    max_depth = int(config.max_recursion_depth)
    out: List[Cluster] = []
    stack: List[Cluster] = [cluster]
    while stack:
        current = stack.pop()
        if not current.over_budget(limit):
            out.append(current)
            continue
        if current.depth >= max_depth:
            current.violations.append(TRIANGLE_LIMIT_EXCEEDED)
            if diagnostics is not None:
                diagnostics.warn(
                    DEPTH_EXHAUSTED,
                    f"Maximum recursion depth reached for {current!r}; it stays above the triangle limit.",
                    triangles=current.triangle_count,
                    limit=limit,
                    depth=current.depth,
                )
            out.append(current)
            continue
        radius = config.subgroup_radius_at(current.depth)
        # Material already uniform inside a cluster.
        groups = seed_and_absorb(current.units, radius, match_material=False)
        children = [
            cluster_from_units(
                g,
                has_lod_groups=current.has_lod_groups,
                is_subdivided=True,
                depth=current.depth + 1,
                diagnostics=diagnostics,
            )
            for g in groups
        ]
        stack.extend(reversed(children))
    return out
