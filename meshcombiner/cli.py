from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from meshcombiner.export.obj_export import write_outcomes
from meshcombiner.io.mesh_import import MeshImportError
from meshcombiner.project.io import SceneManifest, load_config, load_scene
from meshcombiner.project.schema import CombinerConfig, ConfigurationError
from meshcombiner.runner import ClusterRun, RunnerError, build_clusters, combine_clusters, list_materials, summarize
from meshcombiner.scene.filters import filter_objects


LOG = logging.getLogger("meshcombiner")


def _load_config(args: argparse.Namespace) -> CombinerConfig:
    cfg = load_config(Path(args.config)) if args.config else CombinerConfig()
    overrides = {}
    for key in ("algorithm", "grouping_radius", "subgroup_radius", "triangle_limit", "k_clusters", "kmeans_seed", "lod_handling"):
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value
    if getattr(args, "cell_size", None) is not None:
        overrides["cell_size"] = tuple(args.cell_size)
    if overrides:
        cfg = replace(cfg, clustering=replace(cfg.clustering, **overrides))
    cfg.validate()
    return cfg


def _cluster(args: argparse.Namespace) -> tuple[SceneManifest, CombinerConfig, ClusterRun]:
    scene = load_scene(Path(args.scene))
    cfg = _load_config(args)
    pool = filter_objects(scene.objects, cfg.filters)
    LOG.info("Loaded %d object(s), %d after filtering", len(scene.objects), len(pool))
    return scene, cfg, build_clusters(pool, cfg.clustering, scene.lod_groups)


def _print_summary(run: ClusterRun, triangle_limit: int) -> None:
    s = summarize(run.clusters, triangle_limit)
    print(f"Total Objects: {s.total_objects}")
    print(f"Total Triangles: {s.total_triangles}")
    print(f"Number of Clusters: {s.cluster_count}")
    for r in s.rows:
        kind = f"Sub (Level {r.depth})" if r.subdivided else "Main"
        flag = "  [over limit]" if r.over_limit else ""
        print(f"  Cluster {r.index}: {r.material}  objects={r.objects}  triangles={r.triangles}  {kind}{flag}")
    d = run.diagnostics.summary
    print(f"Notices: {d['warnings']} warning(s), {d['info']} info")


def _cmd_materials(args: argparse.Namespace) -> int:
    scene = load_scene(Path(args.scene))
    counts = list_materials(scene.objects)
    print(f"Found {len(counts)} different materials:")
    for material, n in counts.items():
        print(f"- {material}: {n} objects")
    return 0


def _cmd_cluster(args: argparse.Namespace) -> int:
    _, cfg, run = _cluster(args)
    _print_summary(run, cfg.clustering.triangle_limit)
    return 0


def _cmd_combine(args: argparse.Namespace) -> int:
    _, cfg, run = _cluster(args)
    post = replace(
        cfg.post,
        rebuild_normals=cfg.post.rebuild_normals or args.rebuild_normals,
        rebuild_lightmap_uv=cfg.post.rebuild_lightmap_uv or args.lightmap_uv,
        add_collision_mesh=cfg.post.add_collision_mesh or args.collision,
    )
    outcomes = combine_clusters(run, post, cfg.parent_name)
    if not any(o.success for o in outcomes):
        raise RunnerError("No cluster produced combined geometry")
    manifest = write_outcomes(outcomes, Path(args.out))
    _print_summary(run, cfg.clustering.triangle_limit)
    ok = sum(1 for o in outcomes if o.success)
    print(f"Combined {ok}/{len(outcomes)} cluster(s)")
    print(f"  Saved: {manifest}")
    return 0


def _add_cluster_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("scene", help="Path to scene manifest (.json)")
    p.add_argument("--config", help="Path to combiner config (.json)")
    p.add_argument("--algorithm", choices=("proximity", "kmeans", "cell"))
    p.add_argument("--grouping-radius", dest="grouping_radius", type=float)
    p.add_argument("--subgroup-radius", dest="subgroup_radius", type=float)
    p.add_argument("--triangle-limit", dest="triangle_limit", type=int)
    p.add_argument("--k", dest="k_clusters", type=int, help="K-Means clusters per material")
    p.add_argument("--seed", dest="kmeans_seed", type=int, help="K-Means random seed")
    p.add_argument("--cell-size", dest="cell_size", type=float, nargs=3, metavar=("X", "Y", "Z"))
    p.add_argument("--lod", dest="lod_handling", choices=("separate", "unify", "preserve"))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="meshcombiner")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    m = sub.add_parser("materials", help="List materials with object counts.")
    m.add_argument("scene", help="Path to scene manifest (.json)")
    m.set_defaults(func=_cmd_materials)

    c = sub.add_parser("cluster", help="Build clusters and print a summary.")
    _add_cluster_options(c)
    c.set_defaults(func=_cmd_cluster)

    cb = sub.add_parser("combine", help="Build clusters, combine them and write OBJ files.")
    _add_cluster_options(cb)
    cb.add_argument("--out", default="out", help="Output directory (default: out)")
    cb.add_argument("--rebuild-normals", action="store_true")
    cb.add_argument("--lightmap-uv", action="store_true", help="Generate a secondary UV channel")
    cb.add_argument("--collision", action="store_true", help="Attach a welded collision mesh")
    cb.set_defaults(func=_cmd_combine)

    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")
    try:
        return int(args.func(args))
    except (ConfigurationError, MeshImportError) as exc:
        print(f"[ERROR] {exc}")
        return 2
    except RunnerError as exc:
        print(f"[ERROR] {exc}")
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
