from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from meshcombiner.core.transform import transform_normals, transform_points


def _as_array(data, width: int, dtype) -> np.ndarray:
    arr = np.asarray(data, dtype=dtype)
    if arr.size == 0:
        return arr.reshape(0, width)
    return arr.reshape(-1, width)


def _optional_array(data, width: int) -> Optional[np.ndarray]:
    if data is None:
        return None
    return _as_array(data, width, float)


@dataclass(frozen=True, eq=False)
class MeshData:
    """Triangle mesh in the object's local space."""

    vertices: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None
    uv2: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _as_array(self.vertices, 3, float))
        object.__setattr__(self, "faces", _as_array(self.faces, 3, np.int64))
        object.__setattr__(self, "normals", _optional_array(self.normals, 3))
        object.__setattr__(self, "uvs", _optional_array(self.uvs, 2))
        object.__setattr__(self, "uv2", _optional_array(self.uv2, 2))

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.faces.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.vertex_count == 0 or self.triangle_count == 0

    def validate(self) -> None:
        n = self.vertex_count
        if n == 0:
            raise ValueError("MeshData has no vertices")
        if self.faces.size:
            lo, hi = int(self.faces.min()), int(self.faces.max())
            if lo < 0:
                raise ValueError(f"MeshData face index out of range: {lo}")
            if hi >= n:
                raise ValueError(f"MeshData face index out of range: {hi}")
        for label, attr in (("normals", self.normals), ("uvs", self.uvs), ("uv2", self.uv2)):
            if attr is not None and attr.shape[0] != n:
                raise ValueError(f"MeshData {label} length {attr.shape[0]} does not match vertex count {n}")

    def transformed(self, matrix: np.ndarray) -> "MeshData":
        """Copy of the mesh with positions and normals moved by ``matrix``."""
        normals = None if self.normals is None else transform_normals(matrix, self.normals)
        return MeshData(
            vertices=transform_points(matrix, self.vertices),
            faces=self.faces.copy(),
            normals=normals,
            uvs=None if self.uvs is None else self.uvs.copy(),
            uv2=None if self.uv2 is None else self.uv2.copy(),
        )


def box_mesh(size: float = 1.0) -> MeshData:
    """Axis-aligned cube centered on the origin, 8 shared vertices and 12 triangles."""
    h = 0.5 * float(size)
    vertices = [
        (-h, -h, -h), (h, -h, -h), (h, h, -h), (-h, h, -h),
        (-h, -h, h), (h, -h, h), (h, h, h), (-h, h, h),
    ]
    faces = [
        (0, 2, 1), (0, 3, 2),
        (4, 5, 6), (4, 6, 7),
        (0, 1, 5), (0, 5, 4),
        (1, 2, 6), (1, 6, 5),
        (2, 3, 7), (2, 7, 6),
        (3, 0, 4), (3, 4, 7),
    ]
    return MeshData(vertices=vertices, faces=faces)


def grid_mesh(triangles: int, spacing: float = 1.0) -> MeshData:
    """Flat strip of quads with exactly ``triangles`` triangles (rounded up to even)."""
    quads = max(1, (int(triangles) + 1) // 2)
    vertices = []
    for i in range(quads + 1):
        vertices.append((i * spacing, 0.0, 0.0))
        vertices.append((i * spacing, spacing, 0.0))
    faces = []
    for i in range(quads):
        a, b, c, d = 2 * i, 2 * i + 2, 2 * i + 3, 2 * i + 1
        faces.append((a, b, c))
        faces.append((a, c, d))
    return MeshData(vertices=vertices, faces=faces[: max(1, int(triangles))])
