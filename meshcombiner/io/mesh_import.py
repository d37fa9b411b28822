from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from meshcombiner.geometry.mesh import MeshData


class MeshImportError(ValueError):
    pass


Corner = Tuple[int, Optional[int], Optional[int]]


def _resolve(idx: int, count: int) -> int:
    out = count + idx if idx < 0 else idx - 1
    if out < 0:
        raise ValueError(f"OBJ index {idx} out of range")
    return out


def _parse_corner(token: str, nv: int, nt: int, nn: int) -> Corner:
    parts = token.split("/")
    v = _resolve(int(parts[0]), nv)
    t = _resolve(int(parts[1]), nt) if len(parts) > 1 and parts[1] else None
    n = _resolve(int(parts[2]), nn) if len(parts) > 2 and parts[2] else None
    return v, t, n


def parse_obj_text(text: str) -> MeshData:
    """
    Parse Wavefront OBJ text into a single triangle mesh.

    Polygons are fan-triangulated. Each distinct (position, uv, normal) corner
    becomes one vertex, so per-corner attributes survive.
    """
    positions: List[Tuple[float, float, float]] = []
    texcoords: List[Tuple[float, float]] = []
    normals: List[Tuple[float, float, float]] = []
    corner_index: Dict[Corner, int] = {}
    corners: List[Corner] = []
    faces: List[Tuple[int, int, int]] = []

    for lineno, line in enumerate(text.splitlines(), start=1):
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        parts = s.split()
        try:
            if parts[0] == "v" and len(parts) >= 4:
                positions.append((float(parts[1]), float(parts[2]), float(parts[3])))
            elif parts[0] == "vt" and len(parts) >= 3:
                texcoords.append((float(parts[1]), float(parts[2])))
            elif parts[0] == "vn" and len(parts) >= 4:
                normals.append((float(parts[1]), float(parts[2]), float(parts[3])))
            elif parts[0] == "f" and len(parts) >= 4:
                idxs: List[int] = []
                for tok in parts[1:]:
                    corner = _parse_corner(tok, len(positions), len(texcoords), len(normals))
                    if corner not in corner_index:
                        corner_index[corner] = len(corners)
                        corners.append(corner)
                    idxs.append(corner_index[corner])
                for i in range(1, len(idxs) - 1):
                    faces.append((idxs[0], idxs[i], idxs[i + 1]))
        except (ValueError, IndexError) as exc:
            raise MeshImportError(f"Malformed OBJ line {lineno}: {s!r}") from exc

    if not corners:
        # Point cloud or faceless file: keep positions only.
        return MeshData(vertices=positions, faces=np.zeros((0, 3), dtype=np.int64))

    try:
        vertices = [positions[v] for v, _, _ in corners]
        uvs = None
        if all(t is not None for _, t, _ in corners):
            uvs = [texcoords[t] for _, t, _ in corners]
        vn = None
        if all(n is not None for _, _, n in corners):
            vn = [normals[n] for _, _, n in corners]
    except IndexError as exc:
        raise MeshImportError("OBJ face references a missing vertex attribute") from exc

    mesh = MeshData(vertices=vertices, faces=faces, normals=vn, uvs=uvs)
    mesh.validate()
    return mesh


def load_obj(path: Path) -> MeshData:
    return parse_obj_text(Path(path).read_text(encoding="utf-8", errors="replace"))


def _load_with_trimesh(path: Path) -> MeshData:
    try:
        import trimesh  # type: ignore
    except ImportError as exc:
        raise MeshImportError(f"trimesh is required to load {path.suffix} meshes") from exc

    try:
        loaded = trimesh.load(str(path), force="mesh")
    except Exception as exc:
        raise MeshImportError(f"Failed to load mesh via trimesh: {exc}") from exc
    uvs = None
    visual = getattr(loaded, "visual", None)
    if visual is not None and getattr(visual, "uv", None) is not None:
        uvs = np.asarray(visual.uv, dtype=float)
    return MeshData(
        vertices=np.asarray(loaded.vertices, dtype=float),
        faces=np.asarray(loaded.faces, dtype=np.int64),
        normals=np.asarray(loaded.vertex_normals, dtype=float),
        uvs=uvs,
    )


def import_mesh_file(path: str | Path) -> MeshData:
    p = Path(path).expanduser().resolve()
    if not p.exists() or not p.is_file():
        raise MeshImportError(f"Mesh file not found: {p}")
    if p.suffix.lower() == ".obj":
        return load_obj(p)
    return _load_with_trimesh(p)


def mesh_from_dict(d: dict) -> MeshData:
    """Inline mesh: ``{"vertices": [...], "faces": [...], "normals"?, "uvs"?}``."""
    if "vertices" not in d or "faces" not in d:
        raise MeshImportError("Inline mesh requires 'vertices' and 'faces'")
    try:
        mesh = MeshData(
            vertices=d["vertices"],
            faces=d["faces"],
            normals=d.get("normals"),
            uvs=d.get("uvs"),
        )
        mesh.validate()
    except ValueError as exc:
        raise MeshImportError(f"Invalid inline mesh: {exc}") from exc
    return mesh
