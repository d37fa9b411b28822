from __future__ import annotations

from typing import List, Tuple

import numpy as np

from meshcombiner.geometry.mesh import MeshData
from meshcombiner.geometry.tolerance import EPS_AREA, EPS_POS, EPS_WELD


def merge_vertices(vertices: np.ndarray, eps: float = EPS_WELD) -> Tuple[np.ndarray, np.ndarray]:
    """Weld positions on an ``eps`` grid; returns (unique_vertices, remap)."""
    v = np.asarray(vertices, dtype=float).reshape(-1, 3)
    inv = 1.0 / max(eps, EPS_POS)
    out: List[Tuple[float, float, float]] = []
    remap = np.empty(v.shape[0], dtype=np.int64)
    bucket_to_idx: dict[tuple[int, int, int], int] = {}
    for i, (x, y, z) in enumerate(v):
        b = (int(round(float(x) * inv)), int(round(float(y) * inv)), int(round(float(z) * inv)))
        idx = bucket_to_idx.get(b)
        if idx is None:
            idx = len(out)
            bucket_to_idx[b] = idx
            out.append((float(x), float(y), float(z)))
        remap[i] = idx
    return np.asarray(out, dtype=float).reshape(-1, 3), remap


def remove_degenerate_triangles(faces: np.ndarray, vertices: np.ndarray, area_eps: float = EPS_AREA) -> np.ndarray:
    f = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    if f.shape[0] == 0:
        return f
    v = np.asarray(vertices, dtype=float)
    distinct = (f[:, 0] != f[:, 1]) & (f[:, 1] != f[:, 2]) & (f[:, 0] != f[:, 2])
    a, b, c = v[f[:, 0]], v[f[:, 1]], v[f[:, 2]]
    area = 0.5 * np.linalg.norm(np.cross(b - a, c - a), axis=1)
    return f[distinct & (area > area_eps)]


def build_collision_mesh(vertices: np.ndarray, faces: np.ndarray, eps: float = EPS_WELD) -> MeshData:
    """Welded, degenerate-free copy of a render mesh, positions only."""
    welded, remap = merge_vertices(vertices, eps=eps)
    f = remap[np.asarray(faces, dtype=np.int64).reshape(-1, 3)]
    return MeshData(vertices=welded, faces=remove_degenerate_triangles(f, welded))
