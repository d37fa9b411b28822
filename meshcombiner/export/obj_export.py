from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from meshcombiner.combine.aggregator import CombinedMesh, CombineOutcome


def obj_text(mesh: CombinedMesh, name: str) -> str:
    """Wavefront OBJ for one combined mesh, in its own (recentered) space."""
    lines: List[str] = [f"# anchor {mesh.anchor[0]:.6f} {mesh.anchor[1]:.6f} {mesh.anchor[2]:.6f}", f"o {name}"]
    lines.extend(f"v {x:.6f} {y:.6f} {z:.6f}" for x, y, z in mesh.vertices)
    if mesh.uvs is not None:
        lines.extend(f"vt {u:.6f} {v:.6f}" for u, v in mesh.uvs)
    if mesh.normals is not None:
        lines.extend(f"vn {x:.6f} {y:.6f} {z:.6f}" for x, y, z in mesh.normals)
    lines.append(f"usemtl {mesh.material}")

    has_uv = mesh.uvs is not None
    has_n = mesh.normals is not None
    for tri in mesh.faces:
        corners = []
        for i in tri:
            k = int(i) + 1
            if has_uv and has_n:
                corners.append(f"{k}/{k}/{k}")
            elif has_uv:
                corners.append(f"{k}/{k}")
            elif has_n:
                corners.append(f"{k}//{k}")
            else:
                corners.append(str(k))
        lines.append("f " + " ".join(corners))
    return "\n".join(lines) + "\n"


def mesh_file_name(outcome_name: str, mesh: CombinedMesh) -> str:
    suffix = "" if mesh.lod_level is None else f"_LOD{mesh.lod_level}"
    return f"{outcome_name}_combined{suffix}.obj"


def write_outcomes(outcomes: Sequence[CombineOutcome], out_dir: Path) -> Path:
    """Write every combined mesh as OBJ plus a ``manifest.json``; returns the manifest path."""
    out_dir = Path(out_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    entries: List[Dict[str, Any]] = []
    for outcome in outcomes:
        meshes: List[Dict[str, Any]] = []
        for mesh in outcome.meshes:
            fname = mesh_file_name(outcome.name, mesh)
            (out_dir / fname).write_text(obj_text(mesh, outcome.name), encoding="utf-8")
            meshes.append(
                {
                    "file": fname,
                    "lod_level": mesh.lod_level,
                    "screen_transition": mesh.screen_transition,
                    "anchor": [float(x) for x in mesh.anchor],
                    "index_format": mesh.index_format,
                    "vertices": mesh.vertex_count,
                    "triangles": mesh.triangle_count,
                    "has_lightmap_uv": mesh.uv2 is not None,
                    "collision_triangles": None if mesh.collision is None else mesh.collision.triangle_count,
                }
            )
        entries.append(
            {
                "name": outcome.name,
                "material": outcome.cluster.material,
                "success": outcome.success,
                "lod_chain": outcome.is_lod_chain,
                "sources": [str(s) for s in outcome.meshes[0].sources] if outcome.meshes else [o.name for o in outcome.cluster.members()],
                "violations": list(outcome.cluster.violations),
                "meshes": meshes,
            }
        )
    manifest = out_dir / "manifest.json"
    manifest.write_text(json.dumps({"groups": entries}, indent=2), encoding="utf-8")
    return manifest
