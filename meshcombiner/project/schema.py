from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from numbers import Integral, Real
from typing import Any, Dict, Literal, Optional, Tuple

from meshcombiner.scene.filters import FilterConfig


Algorithm = Literal["proximity", "kmeans", "cell"]
LODHandling = Literal["separate", "unify", "preserve"]

ALGORITHMS: Tuple[str, ...] = ("proximity", "kmeans", "cell")
LOD_POLICIES: Tuple[str, ...] = ("separate", "unify", "preserve")

MAX_RECURSION_DEPTH = 10

INT_FIELDS: Tuple[str, ...] = ("triangle_limit", "k_clusters", "kmeans_iterations", "max_recursion_depth")
FLOAT_FIELDS: Tuple[str, ...] = ("grouping_radius", "subgroup_radius", "subdivision_shrink")


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class ClusteringConfig:
    algorithm: Algorithm = "proximity"
    grouping_radius: float = 5.0
    subgroup_radius: float = 2.0
    triangle_limit: int = 10000
    k_clusters: int = 8
    kmeans_iterations: int = 10
    kmeans_seed: Optional[int] = None
    cell_size: Tuple[float, float, float] = (10.0, 10.0, 10.0)
    lod_handling: LODHandling = "separate"
    max_recursion_depth: int = MAX_RECURSION_DEPTH
    subdivision_shrink: float = 0.5

    def validate(self) -> None:
        if self.algorithm not in ALGORITHMS:
            raise ConfigurationError(f"Unknown clustering algorithm: {self.algorithm!r} (expected one of {ALGORITHMS})")
        if self.lod_handling not in LOD_POLICIES:
            raise ConfigurationError(f"Unknown LOD handling: {self.lod_handling!r} (expected one of {LOD_POLICIES})")
        for name in INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Integral):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in FLOAT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        if self.kmeans_seed is not None and (isinstance(self.kmeans_seed, bool) or not isinstance(self.kmeans_seed, Integral)):
            raise ConfigurationError(f"kmeans_seed must be an integer or null, got {self.kmeans_seed!r}")
        if not isinstance(self.cell_size, (tuple, list)) or not all(isinstance(s, Real) for s in self.cell_size):
            raise ConfigurationError(f"cell_size must be three positive values, got {self.cell_size!r}")
        if self.grouping_radius <= 0.0:
            raise ConfigurationError("grouping_radius must be > 0")
        if self.subgroup_radius <= 0.0:
            raise ConfigurationError("subgroup_radius must be > 0")
        # Only the proximity pass seeds with grouping_radius.
        if self.algorithm == "proximity" and self.subgroup_radius > self.grouping_radius:
            raise ConfigurationError("subgroup_radius must not exceed grouping_radius")
        if self.triangle_limit < 1:
            raise ConfigurationError("triangle_limit must be >= 1")
        if self.k_clusters < 1:
            raise ConfigurationError("k_clusters must be >= 1")
        if self.kmeans_iterations < 1:
            raise ConfigurationError("kmeans_iterations must be >= 1")
        if len(self.cell_size) != 3 or any(float(s) <= 0.0 for s in self.cell_size):
            raise ConfigurationError(f"cell_size must be three positive values, got {self.cell_size!r}")
        if self.max_recursion_depth < 0:
            raise ConfigurationError("max_recursion_depth must be >= 0")
        if not 0.0 < self.subdivision_shrink < 1.0:
            raise ConfigurationError("subdivision_shrink must be in (0, 1)")

    def subgroup_radius_at(self, depth: int) -> float:
        """Seed radius used to split a cluster sitting at ``depth``."""
        return float(self.subgroup_radius) * (float(self.subdivision_shrink) ** max(0, int(depth)))


@dataclass(frozen=True)
class PostProcessConfig:
    rebuild_normals: bool = False
    rebuild_lightmap_uv: bool = False
    add_collision_mesh: bool = False
    lightmap_margin: float = 0.01


@dataclass(frozen=True)
class CombinerConfig:
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    post: PostProcessConfig = field(default_factory=PostProcessConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    parent_name: str = "ExampleGroup"

    def validate(self) -> None:
        self.clustering.validate()
        if not self.parent_name:
            raise ConfigurationError("parent_name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _pick(cls, d: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not d:
        return {}
    if not isinstance(d, dict):
        raise ConfigurationError(f"{cls.__name__} section must be a JSON object, got {d!r}")
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in d.items() if k in names}


def _coerce(kw: Dict[str, Any], name: str, kind: type) -> None:
    value = kw.get(name)
    if value is None:
        return
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}")
    try:
        kw[name] = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}") from exc


def clustering_from_dict(d: Optional[Dict[str, Any]]) -> ClusteringConfig:
    """Build a ClusteringConfig from loose JSON values; bad values raise ConfigurationError."""
    kw = _pick(ClusteringConfig, d)
    for name in INT_FIELDS + ("kmeans_seed",):
        _coerce(kw, name, int)
    for name in FLOAT_FIELDS:
        _coerce(kw, name, float)
    if "cell_size" in kw:
        cs = kw["cell_size"]
        if isinstance(cs, (int, float)) and not isinstance(cs, bool):
            cs = (cs, cs, cs)
        try:
            kw["cell_size"] = tuple(float(x) for x in cs)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"cell_size must be three positive values, got {cs!r}") from exc
    return ClusteringConfig(**kw)


def config_from_dict(d: Dict[str, Any]) -> CombinerConfig:
    return CombinerConfig(
        clustering=clustering_from_dict(d.get("clustering")),
        post=PostProcessConfig(**_pick(PostProcessConfig, d.get("post"))),
        filters=FilterConfig(**_pick(FilterConfig, d.get("filters"))),
        parent_name=str(d.get("parent_name", "ExampleGroup")),
    )
