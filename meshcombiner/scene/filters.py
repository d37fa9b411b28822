from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

from meshcombiner.scene.objects import RenderableObject


@dataclass(frozen=True)
class FilterConfig:
    only_static: bool = False
    only_active: bool = False
    only_active_renderers: bool = False
    tag_filter: Optional[str] = None
    layer_filter: Optional[str] = None
    name_contains: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def accepts(obj: RenderableObject, cfg: FilterConfig) -> bool:
    if cfg.only_static and not obj.is_static:
        return False
    if cfg.only_active and not obj.active:
        return False
    if cfg.only_active_renderers and not obj.renderer_enabled:
        return False
    if cfg.tag_filter and obj.tag != cfg.tag_filter:
        return False
    if cfg.layer_filter and obj.layer != cfg.layer_filter:
        return False
    if cfg.name_contains and cfg.name_contains not in obj.name:
        return False
    return True


def filter_objects(objects: Iterable[RenderableObject], cfg: Optional[FilterConfig] = None) -> List[RenderableObject]:
    if cfg is None:
        return list(objects)
    return [o for o in objects if accepts(o, cfg)]
