from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from meshcombiner.geometry.mesh import MeshData
from meshcombiner.io.mesh_import import MeshImportError, import_mesh_file, mesh_from_dict
from meshcombiner.project.schema import CombinerConfig, ConfigurationError, config_from_dict
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject


@dataclass
class SceneManifest:
    objects: List[RenderableObject]
    lod_groups: List[LODGroupDescriptor] = field(default_factory=list)
    root_dir: str = "."


def save_config(config: CombinerConfig, path: Path) -> None:
    path = Path(path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, sort_keys=True), encoding="utf-8")


def load_config(path: Path) -> CombinerConfig:
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Config file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must hold a JSON object: {path}")
    return config_from_dict(data)


def _triple(value: Any, default: tuple, label: str, name: str) -> tuple:
    if value is None:
        return default
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise MeshImportError(f"Object {name!r}: {label} must be a list of 3 numbers")
    try:
        return tuple(float(x) for x in value)
    except (TypeError, ValueError) as exc:
        raise MeshImportError(f"Object {name!r}: {label} must be a list of 3 numbers, got {value!r}") from exc


def _lod_level(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise MeshImportError(f"Object {name!r}: lod_level must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MeshImportError(f"Object {name!r}: lod_level must be an integer, got {value!r}") from exc


def _object_from_dict(d: Dict[str, Any], root: Path, mesh_cache: Dict[str, MeshData]) -> RenderableObject:
    if not isinstance(d, dict):
        raise MeshImportError(f"Scene objects must be JSON objects, got {d!r}")
    name = d.get("name")
    if not name:
        raise MeshImportError("Every scene object needs a 'name'")
    if "material" not in d:
        raise MeshImportError(f"Object {name!r} has no 'material'")

    mesh = None
    raw_mesh = d.get("mesh")
    if isinstance(raw_mesh, dict):
        mesh = mesh_from_dict(raw_mesh)
    elif isinstance(raw_mesh, str):
        key = str((root / raw_mesh).resolve())
        if key not in mesh_cache:
            mesh_cache[key] = import_mesh_file(key)
        mesh = mesh_cache[key]
    elif raw_mesh is not None:
        raise MeshImportError(f"Object {name!r}: 'mesh' must be a path or an inline mesh object")

    return RenderableObject.at(
        str(name),
        str(d["material"]),
        _triple(d.get("position"), (0.0, 0.0, 0.0), "position", name),
        mesh,
        rotation_deg=_triple(d.get("rotation_deg"), (0.0, 0.0, 0.0), "rotation_deg", name),
        scale=_triple(d.get("scale"), (1.0, 1.0, 1.0), "scale", name),
        lod_level=_lod_level(d.get("lod_level", NO_LOD), name),
        source=d.get("source", name),
        tag=str(d.get("tag", "Untagged")),
        layer=str(d.get("layer", "Default")),
        is_static=bool(d.get("is_static", True)),
        active=bool(d.get("active", True)),
        renderer_enabled=bool(d.get("renderer_enabled", True)),
    )


def scene_from_dict(data: Dict[str, Any], root_dir: Path) -> SceneManifest:
    if not isinstance(data, dict):
        raise MeshImportError("Scene file must hold a JSON object")
    mesh_cache: Dict[str, MeshData] = {}
    objects = [_object_from_dict(o, root_dir, mesh_cache) for o in data.get("objects", [])]
    by_name: Dict[str, RenderableObject] = {}
    for o in objects:
        if o.name in by_name:
            raise MeshImportError(f"Duplicate object name in scene: {o.name!r}")
        by_name[o.name] = o

    groups: List[LODGroupDescriptor] = []
    for g in data.get("lod_groups", []):
        levels = []
        for slot in g.get("levels", []):
            missing = [n for n in slot if n not in by_name]
            if missing:
                raise MeshImportError(f"LOD group {g.get('name')!r} references unknown objects: {missing}")
            levels.append([by_name[n] for n in slot])
        groups.append(LODGroupDescriptor(name=str(g.get("name", f"lod_group_{len(groups)}")), levels=levels))
    return SceneManifest(objects=objects, lod_groups=groups, root_dir=str(root_dir))


def load_scene(path: Path) -> SceneManifest:
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise MeshImportError(f"Scene file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MeshImportError(f"Scene file is not valid JSON: {exc}") from exc
    return scene_from_dict(data, path.parent)
