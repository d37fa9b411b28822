from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True, eq=False)
class AABB:
    min: np.ndarray
    max: np.ndarray

    @classmethod
    def from_points(cls, points: np.ndarray) -> "AABB":
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        if pts.shape[0] == 0:
            raise ValueError("Cannot bound an empty point set")
        return cls(min=pts.min(axis=0), max=pts.max(axis=0))

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.min + self.max)

    def union(self, other: "AABB") -> "AABB":
        return AABB(min=np.minimum(self.min, other.min), max=np.maximum(self.max, other.max))


def merge_aabbs(boxes: Sequence[AABB]) -> AABB:
    if not boxes:
        raise ValueError("merge_aabbs requires at least one box")
    out = boxes[0]
    for b in boxes[1:]:
        out = out.union(b)
    return out
