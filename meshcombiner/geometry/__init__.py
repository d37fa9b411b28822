"""
Geometry primitives used by clustering and mesh aggregation.
"""

from meshcombiner.geometry.bounds import AABB, merge_aabbs
from meshcombiner.geometry.mesh import MeshData, box_mesh, grid_mesh

__all__ = ["AABB", "MeshData", "box_mesh", "grid_mesh", "merge_aabbs"]
