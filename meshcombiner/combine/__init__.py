from meshcombiner.combine.aggregator import (
    LOD_TRANSITIONS,
    UINT16_MAX_VERTICES,
    CombinedMesh,
    CombineOutcome,
    combine_cluster,
    index_format_for,
    merge_instances,
    screen_transition,
)

__all__ = [
    "LOD_TRANSITIONS",
    "UINT16_MAX_VERTICES",
    "CombinedMesh",
    "CombineOutcome",
    "combine_cluster",
    "index_format_for",
    "merge_instances",
    "screen_transition",
]
