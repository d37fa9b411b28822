from __future__ import annotations

import numpy as np

from meshcombiner.clustering.cluster import ClusterUnit, cluster_from_units
from meshcombiner.combine.aggregator import (
    NO_GEOMETRY,
    combine_cluster,
    index_format_for,
    merge_instances,
    screen_transition,
)
from meshcombiner.geometry.mesh import MeshData, box_mesh, grid_mesh
from meshcombiner.models.diagnostics import EMPTY_COMBINE, LEVEL_EMPTY, MATERIAL_MISMATCH, Diagnostics
from meshcombiner.project.schema import ClusteringConfig, PostProcessConfig
from meshcombiner.runner import build_clusters, combine_clusters
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject


def _line_mesh(n_vertices: int) -> MeshData:
    vertices = np.column_stack([np.arange(n_vertices, dtype=float), np.zeros(n_vertices), np.zeros(n_vertices)])
    vertices[1, 1] = 1.0
    return MeshData(vertices=vertices, faces=[(0, 1, 2)])


def _plain_cluster(objs):
    return cluster_from_units([ClusterUnit.single(o, NO_LOD) for o in objs], has_lod_groups=False)


def test_index_width_switches_above_uint16_range() -> None:
    assert index_format_for(65535) == "uint16"
    assert index_format_for(65536) == "uint32"

    small = merge_instances([RenderableObject.at("a", "m", (0.0, 0.0, 0.0), _line_mesh(65535))], "m", PostProcessConfig())
    large = merge_instances([RenderableObject.at("b", "m", (0.0, 0.0, 0.0), _line_mesh(65536))], "m", PostProcessConfig())
    assert small.index_format == "uint16" and small.indices.dtype == np.uint16
    assert large.index_format == "uint32" and large.indices.dtype == np.uint32


def test_merged_buffer_is_recentered_on_its_bounds() -> None:
    objs = [
        RenderableObject.at("a", "stone", (10.0, 0.0, 0.0), box_mesh(1.0)),
        RenderableObject.at("b", "stone", (20.0, 0.0, 0.0), box_mesh(1.0)),
    ]
    mesh = merge_instances(objs, "stone", PostProcessConfig())
    assert np.allclose(mesh.anchor, (15.0, 0.0, 0.0))
    assert mesh.vertex_count == 16 and mesh.triangle_count == 24
    box = mesh.bounds()
    assert np.allclose(box.center, (0.0, 0.0, 0.0))
    assert np.allclose(box.min, (-5.5, -0.5, -0.5))
    assert mesh.sources == ("a", "b")


def test_instance_normals_kept_unless_rebuilt() -> None:
    base = box_mesh(1.0)
    flagged = MeshData(vertices=base.vertices, faces=base.faces, normals=np.tile([1.0, 0.0, 0.0], (8, 1)))
    obj = RenderableObject.at("a", "m", (3.0, 0.0, 0.0), flagged)

    kept = merge_instances([obj], "m", PostProcessConfig(rebuild_normals=False))
    assert np.allclose(kept.normals, np.tile([1.0, 0.0, 0.0], (8, 1)))

    rebuilt = merge_instances([obj], "m", PostProcessConfig(rebuild_normals=True))
    assert rebuilt.normals.shape == (8, 3)
    assert np.allclose(np.linalg.norm(rebuilt.normals, axis=1), 1.0)
    assert not np.allclose(rebuilt.normals, kept.normals)


def test_lightmap_uvs_give_each_instance_its_own_tile() -> None:
    objs = [
        RenderableObject.at("a", "m", (0.0, 0.0, 0.0), box_mesh()),
        RenderableObject.at("b", "m", (5.0, 0.0, 0.0), box_mesh()),
    ]
    mesh = merge_instances(objs, "m", PostProcessConfig(rebuild_lightmap_uv=True))
    assert mesh.uv2.shape == (16, 2)
    assert np.all((mesh.uv2 >= 0.0) & (mesh.uv2 <= 1.0))
    assert np.all(mesh.uv2[:8, 0] < 0.5)
    assert np.all(mesh.uv2[8:, 0] >= 0.5)

    plain = merge_instances(objs, "m", PostProcessConfig())
    assert plain.uv2 is None


def test_collision_mesh_welds_coincident_vertices() -> None:
    objs = [
        RenderableObject.at("a", "m", (1.0, 2.0, 3.0), box_mesh()),
        RenderableObject.at("b", "m", (1.0, 2.0, 3.0), box_mesh()),
    ]
    mesh = merge_instances(objs, "m", PostProcessConfig(add_collision_mesh=True))
    assert mesh.vertex_count == 16
    assert mesh.collision.vertex_count == 8
    assert mesh.collision.triangle_count == 24


def test_lod_chain_fills_missing_rungs_with_transitions() -> None:
    lod0 = RenderableObject.at("tree_LOD0", "bark", (0.0, 0.0, 0.0), box_mesh())
    lod2 = RenderableObject.at("tree_LOD2", "bark", (0.0, 0.0, 0.0), grid_mesh(4))
    group = LODGroupDescriptor("tree", [[lod0], [], [lod2]])
    run = build_clusters([lod0, lod2], ClusteringConfig(triangle_limit=100000), [group])
    assert run.max_lod_level == 2

    outcomes = combine_clusters(run, parent_name="Forest")
    assert len(outcomes) == 1
    outcome = outcomes[0]
    assert outcome.success and outcome.is_lod_chain
    assert outcome.name == "Forest_Group1_bark"
    assert [m.lod_level for m in outcome.meshes] == [0, 1, 2]
    assert [m.screen_transition for m in outcome.meshes] == [0.6, 0.4, 0.2]
    assert [m.triangle_count for m in outcome.meshes] == [12, 12, 4]


def test_plain_object_joins_every_rung_of_a_unified_chain() -> None:
    lod0 = RenderableObject.at("tree_LOD0", "bark", (0.0, 0.0, 0.0), box_mesh())
    lod1 = RenderableObject.at("tree_LOD1", "bark", (0.0, 0.0, 0.0), grid_mesh(4))
    stump = RenderableObject.at("stump", "bark", (1.0, 0.0, 0.0), grid_mesh(2))
    group = LODGroupDescriptor("tree", [[lod0], [lod1]])
    run = build_clusters([lod0, lod1, stump], ClusteringConfig(lod_handling="unify", triangle_limit=100000), [group])
    outcome = combine_clusters(run)[0]
    assert [m.triangle_count for m in outcome.meshes] == [14, 6]
    assert all("stump" in m.sources for m in outcome.meshes)


def test_cluster_without_geometry_fails_softly() -> None:
    diag = Diagnostics()
    cluster = _plain_cluster([RenderableObject.at("empty", "m", (0.0, 0.0, 0.0))])
    outcome = combine_cluster(cluster, diagnostics=diag, name="G")
    assert not outcome.success
    assert outcome.meshes == []
    assert NO_GEOMETRY in cluster.violations
    assert len(diag.by_id(EMPTY_COMBINE)) == 1


def test_empty_rung_is_skipped_with_notice() -> None:
    diag = Diagnostics()
    hollow = RenderableObject.at("hollow_LOD0", "m", (0.0, 0.0, 0.0))
    solid = RenderableObject.at("solid_LOD1", "m", (0.0, 0.0, 0.0), box_mesh())
    cluster = cluster_from_units([ClusterUnit.single(hollow, 0), ClusterUnit.single(solid, 1)], has_lod_groups=True)
    outcome = combine_cluster(cluster, diagnostics=diag)
    assert outcome.success
    assert [m.lod_level for m in outcome.meshes] == [1]
    assert len(diag.by_id(LEVEL_EMPTY)) == 1


def test_foreign_material_is_left_out_of_the_merge() -> None:
    diag = Diagnostics()
    objs = [
        RenderableObject.at("a", "stone", (0.0, 0.0, 0.0), box_mesh()),
        RenderableObject.at("b", "wood", (1.0, 0.0, 0.0), box_mesh()),
    ]
    mesh = merge_instances(objs, "stone", PostProcessConfig(), diag)
    assert mesh.sources == ("a",)
    assert mesh.triangle_count == 12
    assert len(diag.by_id(MATERIAL_MISMATCH)) == 1


def test_transition_table_has_a_floor() -> None:
    assert screen_transition(0) == 0.6
    assert screen_transition(4) == 0.05
    assert screen_transition(7) == 0.01
