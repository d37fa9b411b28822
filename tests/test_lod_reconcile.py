from __future__ import annotations

import numpy as np
import pytest

from meshcombiner.clustering.lod import assign_levels, level_members, reconcile
from meshcombiner.geometry.mesh import box_mesh
from meshcombiner.models.diagnostics import LOD_DUPLICATE, Diagnostics
from meshcombiner.project.schema import ClusteringConfig
from meshcombiner.runner import build_clusters
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject


def _scene():
    a0 = RenderableObject.at("rock_LOD0", "stone", (0.0, 0.0, 0.0), box_mesh(1.0))
    a1 = RenderableObject.at("rock_LOD1", "stone", (4.0, 0.0, 0.0), box_mesh(1.0))
    p = RenderableObject.at("pebble", "stone", (1.0, 0.0, 0.0), box_mesh(0.5))
    group = LODGroupDescriptor("rock", [[a0], [a1]])
    return a0, a1, p, group


def test_separate_splits_lod_and_plain_objects() -> None:
    a0, a1, p, group = _scene()
    rec = reconcile([a0, a1, p], [group], "separate")
    assert len(rec.batches) == 2
    lod, plain = rec.batches
    assert lod.has_lod_groups and not plain.has_lod_groups
    assert [(u.lod_level, u.objects[0].name) for u in lod.units] == [(0, "rock_LOD0"), (1, "rock_LOD1")]
    assert [u.objects[0].name for u in plain.units] == ["pebble"]
    assert rec.max_lod_level == 1


def test_unify_treats_everything_as_lod_bearing() -> None:
    a0, a1, p, group = _scene()
    rec = reconcile([a0, a1, p], [group], "unify")
    assert len(rec.batches) == 1
    batch = rec.batches[0]
    assert batch.has_lod_groups
    assert [u.lod_level for u in batch.units] == [0, 1, NO_LOD]

    run = build_clusters([a0, a1, p], ClusteringConfig(lod_handling="unify", triangle_limit=100000), [group])
    assert all(c.has_lod_groups for c in run.clusters)


def test_preserve_keeps_groups_whole_at_their_bounding_center() -> None:
    a0, a1, p, group = _scene()
    rec = reconcile([a0, a1, p], [group], "preserve")
    lod, plain = rec.batches
    assert len(lod.units) == 1
    unit = lod.units[0]
    assert unit.group == "rock"
    assert [(lvl, o.name) for lvl, o in unit.entries] == [(0, "rock_LOD0"), (1, "rock_LOD1")]
    assert np.allclose(unit.position, (2.0, 0.0, 0.0))
    assert [u.objects[0].name for u in plain.units] == ["pebble"]


def test_preserve_never_splits_a_group_across_clusters() -> None:
    a0, a1, p, group = _scene()
    # Grouping radius smaller than the LOD0-LOD1 spacing.
    cfg = ClusteringConfig(grouping_radius=1.0, subgroup_radius=0.5, lod_handling="preserve", triangle_limit=100000)
    run = build_clusters([a0, a1, p], cfg, [group])
    holding = [c for c in run.clusters if a0 in c.members()]
    assert len(holding) == 1
    assert a1 in holding[0].members()


def test_duplicate_slots_first_occurrence_wins() -> None:
    a0, a1, p, _ = _scene()
    diag = Diagnostics()
    group = LODGroupDescriptor("rock", [[a0], [a0, a1]])
    levels, groups = assign_levels([a0, a1, p], [group], diag)
    assert levels[a0] == 0
    assert levels[a1] == 1
    assert levels[p] == NO_LOD
    assert groups[a0] == "rock" and p not in groups
    assert len(diag.by_id(LOD_DUPLICATE)) == 1


def test_descriptor_entries_outside_the_pool_are_ignored() -> None:
    a0, a1, p, group = _scene()
    rec = reconcile([a0, p], [group], "separate")
    assert a1 not in rec.levels
    assert [u.objects[0].name for u in rec.batches[0].units] == ["rock_LOD0"]


def test_native_lod_level_is_kept_without_descriptor() -> None:
    o = RenderableObject.at("native", "m", (0.0, 0.0, 0.0), box_mesh(), lod_level=2)
    rec = reconcile([o], [], "separate")
    assert len(rec.batches) == 1
    assert rec.batches[0].has_lod_groups
    assert rec.max_lod_level == 2


def test_unknown_policy_raises() -> None:
    a0, a1, p, group = _scene()
    with pytest.raises(ValueError):
        reconcile([a0], [group], "merge-all")


def test_gap_fill_reuses_nearest_lower_level() -> None:
    a, c, p = (RenderableObject.at(n, "m", (0.0, 0.0, 0.0)) for n in ("a", "c", "p"))
    out = level_members({0: [a], 2: [c], NO_LOD: [p]}, 3)
    assert {lvl: [o.name for o in objs] for lvl, objs in out.items()} == {
        0: ["a", "p"],
        1: ["a", "p"],
        2: ["c", "p"],
        3: ["c", "p"],
    }


def test_gap_fill_has_nothing_below_first_populated_level() -> None:
    b = RenderableObject.at("b", "m", (0.0, 0.0, 0.0))
    out = level_members({1: [b]}, 2)
    assert sorted(out) == [1, 2]
    assert out[2] == [b]
