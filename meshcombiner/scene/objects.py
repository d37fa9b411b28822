from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from meshcombiner.core.transform import Matrix4, compose_trs, translation
from meshcombiner.geometry.bounds import AABB
from meshcombiner.geometry.mesh import MeshData


# Marks an object with no LOD membership.
NO_LOD = -1


@dataclass(frozen=True, eq=False)
class RenderableObject:
    """
    A captured leaf geometry instance.

    Compared and hashed by identity: two captures of equal data are still
    distinct scene objects.
    """

    name: str
    material: str
    transform: Matrix4 = field(default_factory=lambda: np.eye(4))
    mesh: Optional[MeshData] = None
    lod_level: int = NO_LOD
    source: Any = None
    tag: str = "Untagged"
    layer: str = "Default"
    is_static: bool = True
    active: bool = True
    renderer_enabled: bool = True

    def __post_init__(self) -> None:
        m = np.asarray(self.transform, dtype=float)
        if m.shape != (4, 4):
            raise ValueError(f"RenderableObject {self.name!r} transform must be 4x4, got {m.shape}")
        object.__setattr__(self, "transform", m)

    @classmethod
    def at(
        cls,
        name: str,
        material: str,
        position: Sequence[float],
        mesh: Optional[MeshData] = None,
        *,
        rotation_deg: Sequence[float] = (0.0, 0.0, 0.0),
        scale: Optional[Sequence[float]] = None,
        **kwargs: Any,
    ) -> "RenderableObject":
        return cls(name=name, material=material, transform=compose_trs(position, rotation_deg, scale), mesh=mesh, **kwargs)

    @property
    def position(self) -> np.ndarray:
        return translation(self.transform)

    @property
    def triangle_count(self) -> int:
        return 0 if self.mesh is None else self.mesh.triangle_count

    @property
    def has_geometry(self) -> bool:
        return self.mesh is not None and not self.mesh.is_empty

    def world_mesh(self) -> Optional[MeshData]:
        if self.mesh is None:
            return None
        return self.mesh.transformed(self.transform)

    def world_bounds(self) -> AABB:
        """Bounds of the world-space mesh, or a point box at the position."""
        if self.has_geometry:
            return AABB.from_points(self.world_mesh().vertices)
        p = self.position
        return AABB(min=p.copy(), max=p.copy())

    def __repr__(self) -> str:
        return f"RenderableObject(name={self.name!r}, material={self.material!r}, lod_level={self.lod_level})"


@dataclass(frozen=True)
class LODGroupDescriptor:
    """A named LOD group: ``levels[i]`` holds the objects visible at level ``i``."""

    name: str
    levels: Tuple[Tuple[RenderableObject, ...], ...]

    def __init__(self, name: str, levels: Sequence[Sequence[RenderableObject]]) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "levels", tuple(tuple(lvl) for lvl in levels))

    @property
    def max_level(self) -> int:
        return len(self.levels) - 1

    def objects(self) -> List[RenderableObject]:
        return [obj for lvl in self.levels for obj in lvl]
