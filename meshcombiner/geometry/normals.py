from __future__ import annotations

import numpy as np

from meshcombiner.geometry.tolerance import EPS_AREA


def face_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Unnormalized face normals; length is twice the triangle area."""
    v = np.asarray(vertices, dtype=float)
    f = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    if f.shape[0] == 0:
        return np.zeros((0, 3))
    a, b, c = v[f[:, 0]], v[f[:, 1]], v[f[:, 2]]
    return np.cross(b - a, c - a)


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """
    Area-weighted vertex normals from the mesh topology.

    Vertices that touch no non-degenerate triangle get +Z.
    """
    v = np.asarray(vertices, dtype=float).reshape(-1, 3)
    f = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    acc = np.zeros_like(v)
    fn = face_normals(v, f)
    for k in range(3):
        np.add.at(acc, f[:, k], fn)
    lengths = np.linalg.norm(acc, axis=1)
    out = np.tile(np.array([0.0, 0.0, 1.0]), (v.shape[0], 1))
    ok = lengths > EPS_AREA
    out[ok] = acc[ok] / lengths[ok, None]
    return out
