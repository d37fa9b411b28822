from __future__ import annotations

import numpy as np

from meshcombiner.clustering.cell import CellPartitioner, cell_coordinate
from meshcombiner.clustering.cluster import ClusterUnit
from meshcombiner.clustering.subdivide import TRIANGLE_LIMIT_EXCEEDED
from meshcombiner.geometry.mesh import box_mesh, grid_mesh
from meshcombiner.models.diagnostics import CELL_OVER_BUDGET
from meshcombiner.project.schema import ClusteringConfig
from meshcombiner.runner import build_clusters
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject


def _cell_cfg(**kw) -> ClusteringConfig:
    return ClusteringConfig(algorithm="cell", cell_size=(10.0, 10.0, 10.0), **kw)


def test_same_and_adjacent_cells() -> None:
    objs = [
        RenderableObject.at("a", "m", (1.0, 1.0, 1.0), box_mesh()),
        RenderableObject.at("b", "m", (9.0, 9.0, 9.0), box_mesh()),
        RenderableObject.at("c", "m", (11.0, 1.0, 1.0), box_mesh()),
    ]
    run = build_clusters(objs, _cell_cfg())
    assert sorted(len(c) for c in run.clusters) == [1, 2]


def test_cell_coordinates_floor_negative_positions() -> None:
    assert cell_coordinate(np.array([-0.5, 0.0, 19.9]), (10.0, 10.0, 10.0)) == (-1, 0, 1)
    assert cell_coordinate(np.array([10.0, -10.0, 0.0]), (10.0, 5.0, 1.0)) == (1, -2, 0)


def test_partition_is_deterministic() -> None:
    rng = np.random.default_rng(11)
    objs = [
        RenderableObject.at(f"o{i}", ("a", "b")[i % 2], tuple(rng.uniform(-30.0, 30.0, size=3)), box_mesh())
        for i in range(50)
    ]
    first = build_clusters(objs, _cell_cfg())
    second = build_clusters(objs, _cell_cfg())
    assert [[o.name for o in c.members()] for c in first.clusters] == [[o.name for o in c.members()] for c in second.clusters]
    assert len([o for c in first.clusters for o in c.members()]) == len(objs)


def test_lod_levels_in_one_cell_never_merge() -> None:
    lod0 = RenderableObject.at("tree_LOD0", "bark", (1.0, 1.0, 1.0), box_mesh())
    lod1 = RenderableObject.at("tree_LOD1", "bark", (1.0, 1.0, 1.0), box_mesh())
    group = LODGroupDescriptor("tree", [[lod0], [lod1]])
    run = build_clusters([lod0, lod1], _cell_cfg(lod_handling="unify"), [group])
    assert len(run.clusters) == 2
    assert sorted(c.lod_levels[0] for c in run.clusters) == [0, 1]


def test_over_budget_cells_are_annotated_not_split() -> None:
    objs = [RenderableObject.at(f"o{i}", "m", (1.0 + i, 1.0, 1.0), grid_mesh(400)) for i in range(3)]
    run = build_clusters(objs, _cell_cfg(triangle_limit=1000))
    assert len(run.clusters) == 1
    c = run.clusters[0]
    assert c.triangle_count == 1200
    assert not c.is_subdivided
    assert TRIANGLE_LIMIT_EXCEEDED in c.violations
    assert len(run.diagnostics.by_id(CELL_OVER_BUDGET)) == 1


def test_cell_partitioner_does_not_subdivide() -> None:
    assert CellPartitioner.subdivides is False
    units = [ClusterUnit.single(RenderableObject.at("a", "m", (0.0, 0.0, 0.0)), NO_LOD)]
    clusters = CellPartitioner().partition(units, _cell_cfg(), has_lod_groups=False)
    assert len(clusters) == 1


def test_preserved_group_is_bucketed_by_its_bounding_center() -> None:
    # The two levels fall in different cells; the group center (10, 1, 1) lands in cell (1, 0, 0).
    lod0 = RenderableObject.at("crate_LOD0", "wood", (9.0, 1.0, 1.0), box_mesh())
    lod1 = RenderableObject.at("crate_LOD1", "wood", (11.0, 1.0, 1.0), box_mesh())
    plain = RenderableObject.at("barrel", "wood", (1.0, 1.0, 1.0), box_mesh())
    group = LODGroupDescriptor("crate", [[lod0], [lod1]])
    run = build_clusters([lod0, lod1, plain], _cell_cfg(lod_handling="preserve"), [group])

    holding = [c for c in run.clusters if lod0 in c.members()]
    assert len(holding) == 1
    chain = holding[0]
    assert lod1 in chain.members() and plain not in chain.members()
    assert chain.has_lod_groups
    assert chain.lod_levels == [0, 1]
    assert cell_coordinate(chain.units[0].position, (10.0, 10.0, 10.0)) == (1, 0, 0)
