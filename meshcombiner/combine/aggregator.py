from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

import numpy as np

from meshcombiner.clustering.cluster import Cluster
from meshcombiner.clustering.lod import level_members
from meshcombiner.geometry.bounds import AABB, merge_aabbs
from meshcombiner.geometry.cleaning import build_collision_mesh
from meshcombiner.geometry.lightmap_uv import generate_lightmap_uvs
from meshcombiner.geometry.mesh import MeshData
from meshcombiner.geometry.normals import compute_vertex_normals
from meshcombiner.models.diagnostics import EMPTY_COMBINE, LEVEL_EMPTY, MATERIAL_MISMATCH, Diagnostics
from meshcombiner.project.schema import PostProcessConfig
from meshcombiner.scene.objects import RenderableObject


LOG = logging.getLogger(__name__)

# Largest vertex count addressable by a 16-bit index buffer.
UINT16_MAX_VERTICES = 65535

# Screen-relative transition height per LOD level; deeper levels use the floor.
LOD_TRANSITIONS = (0.6, 0.4, 0.2, 0.1, 0.05)
LOD_TRANSITION_FLOOR = 0.01

NO_GEOMETRY = "no_geometry"


def index_format_for(vertex_count: int) -> str:
    return "uint32" if int(vertex_count) > UINT16_MAX_VERTICES else "uint16"


def screen_transition(level: int) -> float:
    if 0 <= int(level) < len(LOD_TRANSITIONS):
        return LOD_TRANSITIONS[int(level)]
    return LOD_TRANSITION_FLOOR


@dataclass(frozen=True, eq=False)
class CombinedMesh:
    vertices: np.ndarray
    indices: np.ndarray
    index_format: str
    anchor: np.ndarray
    material: str
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None
    uv2: Optional[np.ndarray] = None
    lod_level: Optional[int] = None
    screen_transition: Optional[float] = None
    collision: Optional[MeshData] = None
    sources: tuple = ()

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.size // 3)

    @property
    def faces(self) -> np.ndarray:
        return self.indices.reshape(-1, 3).astype(np.int64)

    def bounds(self) -> AABB:
        return AABB.from_points(self.vertices)


@dataclass
class CombineOutcome:
    cluster: Cluster
    meshes: List[CombinedMesh] = field(default_factory=list)
    success: bool = False
    name: str = ""

    @property
    def is_lod_chain(self) -> bool:
        return self.cluster.has_lod_groups


def merge_instances(
    objects: Sequence[RenderableObject],
    material: str,
    post: PostProcessConfig,
    diagnostics: Optional[Diagnostics] = None,
    label: str = "",
) -> Optional[CombinedMesh]:
    """
    Merge world-space copies of ``objects`` into one buffer centered on its bounds.

    Objects without geometry or with a different material are left out.
    Returns None when nothing usable remains.
    """
    used: List[RenderableObject] = []
    instances: List[MeshData] = []
    for obj in objects:
        if not obj.has_geometry:
            continue
        if obj.material != material:
            if diagnostics is not None:
                diagnostics.warn(
                    MATERIAL_MISMATCH,
                    f"{obj.name!r} uses {obj.material!r}, skipped while combining {label or material!r}.",
                    object=obj.name,
                    cluster_material=material,
                )
            continue
        used.append(obj)
        instances.append(obj.world_mesh())
    if not instances:
        return None

    box = merge_aabbs([AABB.from_points(m.vertices) for m in instances])
    vertices = np.vstack([m.vertices for m in instances])
    offsets = np.cumsum([0] + [m.vertex_count for m in instances[:-1]])
    faces = np.vstack([m.faces + off for m, off in zip(instances, offsets)])
    index_format = index_format_for(vertices.shape[0])

    if post.rebuild_normals:
        normals = compute_vertex_normals(vertices, faces)
    else:
        normals = np.vstack([
            m.normals if m.normals is not None else compute_vertex_normals(m.vertices, m.faces)
            for m in instances
        ])

    uvs = None
    if any(m.uvs is not None for m in instances):
        uvs = np.vstack([m.uvs if m.uvs is not None else np.zeros((m.vertex_count, 2)) for m in instances])

    uv2 = None
    if post.rebuild_lightmap_uv:
        uv2 = generate_lightmap_uvs([(m.vertices, m.uvs) for m in instances], margin=post.lightmap_margin)

    anchor = box.center
    vertices = vertices - anchor

    collision = build_collision_mesh(vertices, faces) if post.add_collision_mesh else None

    return CombinedMesh(
        vertices=vertices,
        indices=faces.reshape(-1).astype(np.uint32 if index_format == "uint32" else np.uint16),
        index_format=index_format,
        anchor=anchor,
        material=material,
        normals=normals,
        uvs=uvs,
        uv2=uv2,
        collision=collision,
        sources=tuple(o.source if o.source is not None else o.name for o in used),
    )


def combine_cluster(
    cluster: Cluster,
    post: Optional[PostProcessConfig] = None,
    max_lod_level: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
    name: str = "",
) -> CombineOutcome:
    """
    Build one CombinedMesh per LOD rung (LOD-bearing clusters) or a single one.

    A cluster yielding no mesh at all fails softly: the outcome reports
    ``success=False`` and the cluster's sources are left untouched.
    """
    post = post or PostProcessConfig()
    label = name or repr(cluster)
    meshes: List[CombinedMesh] = []

    if cluster.has_lod_groups:
        top = cluster.max_lod_level if max_lod_level is None else int(max_lod_level)
        for level, members in level_members(cluster.levels, top).items():
            mesh = merge_instances(members, cluster.material, post, diagnostics, label)
            if mesh is None:
                if diagnostics is not None:
                    diagnostics.info(LEVEL_EMPTY, f"LOD {level} of {label} has no mesh data; skipped.", level=level)
                continue
            meshes.append(replace(mesh, lod_level=level, screen_transition=screen_transition(level)))
    else:
        mesh = merge_instances(cluster.members(), cluster.material, post, diagnostics, label)
        if mesh is not None:
            meshes.append(mesh)

    if not meshes:
        cluster.violations.append(NO_GEOMETRY)
        if diagnostics is not None:
            diagnostics.warn(EMPTY_COMBINE, f"Failed to combine meshes for {label}; objects are grouped but not combined.")
        else:
            LOG.warning("Failed to combine meshes for %s", label)
        return CombineOutcome(cluster=cluster, meshes=[], success=False, name=name)
    return CombineOutcome(cluster=cluster, meshes=meshes, success=True, name=name)
