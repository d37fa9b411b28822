from meshcombiner.scene.filters import FilterConfig, filter_objects
from meshcombiner.scene.objects import NO_LOD, LODGroupDescriptor, RenderableObject

__all__ = ["NO_LOD", "FilterConfig", "LODGroupDescriptor", "RenderableObject", "filter_objects"]
