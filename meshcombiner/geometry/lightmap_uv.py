from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from meshcombiner.geometry.tolerance import EPS_EXTENT


def _planar_projection(vertices: np.ndarray) -> np.ndarray:
    # Drop the flattest axis.
    ext = vertices.max(axis=0) - vertices.min(axis=0)
    drop = int(np.argmin(ext))
    keep = [i for i in range(3) if i != drop]
    return vertices[:, keep]


def _normalize01(coords: np.ndarray) -> np.ndarray:
    lo = coords.min(axis=0)
    span = coords.max(axis=0) - lo
    # Uniform scale keeps the chart aspect ratio.
    scale = float(span.max())
    if scale <= EPS_EXTENT:
        return np.full_like(coords, 0.5)
    return (coords - lo) / scale


def chart_coordinates(vertices: np.ndarray, uvs: Optional[np.ndarray]) -> np.ndarray:
    """Per-instance chart in [0, 1]^2: primary UVs if present, else a planar projection."""
    v = np.asarray(vertices, dtype=float).reshape(-1, 3)
    if v.shape[0] == 0:
        return np.zeros((0, 2))
    base = np.asarray(uvs, dtype=float).reshape(-1, 2) if uvs is not None else _planar_projection(v)
    return _normalize01(base)


def generate_lightmap_uvs(
    parts: Sequence[tuple],
    margin: float = 0.01,
) -> np.ndarray:
    """
    Pack one chart per merged instance into a square atlas.

    ``parts`` holds ``(vertices, uvs_or_None)`` pairs in buffer order. Vertices are
    never split; every instance owns one tile of a ceil(sqrt(n)) grid.
    """
    n = len(parts)
    if n == 0:
        return np.zeros((0, 2))
    grid = int(math.ceil(math.sqrt(n)))
    tile = 1.0 / grid
    pad = min(max(0.0, float(margin)), 0.45) * tile
    inner = tile - 2.0 * pad
    out: List[np.ndarray] = []
    for i, (vertices, uvs) in enumerate(parts):
        row, col = divmod(i, grid)
        chart = chart_coordinates(vertices, uvs)
        origin = np.array([col * tile + pad, row * tile + pad])
        out.append(origin + chart * inner)
    return np.clip(np.vstack(out), 0.0, 1.0)
