from __future__ import annotations

import numpy as np

from meshcombiner.clustering.cluster import GIZMO_PADDING, Cluster, ClusterUnit, cluster_from_units
from meshcombiner.geometry.mesh import grid_mesh
from meshcombiner.models.diagnostics import MATERIAL_MISMATCH, Diagnostics
from meshcombiner.scene.objects import NO_LOD, RenderableObject


def _unit(name: str, material: str, pos, tris: int = 4, level: int = NO_LOD) -> ClusterUnit:
    return ClusterUnit.single(RenderableObject.at(name, material, pos, grid_mesh(tris)), level)


def test_center_is_recomputed_on_every_insert() -> None:
    c = Cluster(_unit("a", "m", (0.0, 0.0, 0.0)))
    assert np.allclose(c.center, (0.0, 0.0, 0.0))
    c.add(_unit("b", "m", (2.0, 0.0, 0.0)))
    assert np.allclose(c.center, (1.0, 0.0, 0.0))
    c.add(_unit("c", "m", (4.0, 3.0, 0.0)))
    assert np.allclose(c.center, (2.0, 1.0, 0.0))


def test_triangle_count_and_radius() -> None:
    c = cluster_from_units(
        [_unit("a", "m", (0.0, 0.0, 0.0), tris=4), _unit("b", "m", (2.0, 0.0, 0.0), tris=6)],
        has_lod_groups=False,
    )
    assert c.triangle_count == 10
    assert len(c) == 2
    assert abs(c.radius - (1.0 + GIZMO_PADDING)) < 1e-9
    assert not c.over_budget(10)
    assert c.over_budget(9)


def test_mismatched_material_is_rejected_and_reported() -> None:
    diag = Diagnostics()
    c = Cluster(_unit("a", "stone", (0.0, 0.0, 0.0)), diagnostics=diag)
    assert not c.add(_unit("b", "wood", (1.0, 0.0, 0.0)))
    assert [o.name for o in c.members()] == ["a"]
    assert np.allclose(c.center, (0.0, 0.0, 0.0))
    notices = diag.by_id(MATERIAL_MISMATCH)
    assert len(notices) == 1
    assert notices[0].severity == "WARN"
    assert diag.summary == {"warnings": 1, "info": 0}


def test_members_are_bucketed_per_level() -> None:
    c = Cluster(_unit("a0", "m", (0.0, 0.0, 0.0), level=0), has_lod_groups=True)
    c.add(_unit("a1", "m", (0.0, 0.0, 0.0), level=1))
    c.add(_unit("p", "m", (0.0, 0.0, 0.0)))
    assert sorted(c.levels) == [NO_LOD, 0, 1]
    assert c.lod_levels == [0, 1]
    assert c.max_lod_level == 1
    assert c.has_lod_groups
    assert not c.is_subdivided and c.depth == 0
