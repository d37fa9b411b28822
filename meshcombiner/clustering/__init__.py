"""
Clustering: partition renderable objects into same-material groups and split
groups that exceed the triangle budget.
"""

from meshcombiner.clustering.cell import CellPartitioner
from meshcombiner.clustering.cluster import Cluster, ClusterUnit
from meshcombiner.clustering.kmeans import KMeansPartitioner
from meshcombiner.clustering.lod import LODReconciliation, UnitBatch, level_members, reconcile
from meshcombiner.clustering.partition import Partitioner, get_partitioner
from meshcombiner.clustering.proximity import ProximityPartitioner, seed_and_absorb
from meshcombiner.clustering.subdivide import subdivide_cluster

__all__ = [
    "CellPartitioner",
    "Cluster",
    "ClusterUnit",
    "KMeansPartitioner",
    "LODReconciliation",
    "Partitioner",
    "ProximityPartitioner",
    "UnitBatch",
    "get_partitioner",
    "level_members",
    "reconcile",
    "seed_and_absorb",
    "subdivide_cluster",
]
