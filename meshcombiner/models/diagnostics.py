from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal


Severity = Literal["WARN", "INFO"]

LOG = logging.getLogger(__name__)

DEPTH_EXHAUSTED = "MC_DEPTH_EXHAUSTED"
EMPTY_COMBINE = "MC_EMPTY_COMBINE"
LEVEL_EMPTY = "MC_LEVEL_EMPTY"
MATERIAL_MISMATCH = "MC_MATERIAL_MISMATCH"
CELL_OVER_BUDGET = "MC_CELL_OVER_BUDGET"
LOD_DUPLICATE = "MC_LOD_DUPLICATE"


@dataclass(frozen=True)
class Notice:
    id: str
    severity: Severity
    message: str
    evidence: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Diagnostics:
    """Severity-tagged notices collected over one clustering/combination run."""

    notices: List[Notice] = field(default_factory=list)

    def _emit(self, notice: Notice) -> Notice:
        self.notices.append(notice)
        level = logging.WARNING if notice.severity == "WARN" else logging.INFO
        LOG.log(level, "[%s] %s", notice.id, notice.message)
        return notice

    def warn(self, id: str, message: str, **evidence: Any) -> Notice:
        return self._emit(Notice(id=id, severity="WARN", message=message, evidence=evidence))

    def info(self, id: str, message: str, **evidence: Any) -> Notice:
        return self._emit(Notice(id=id, severity="INFO", message=message, evidence=evidence))

    def by_id(self, id: str) -> List[Notice]:
        return [n for n in self.notices if n.id == id]

    @property
    def summary(self) -> Dict[str, int]:
        warns = sum(1 for n in self.notices if n.severity == "WARN")
        info = sum(1 for n in self.notices if n.severity == "INFO")
        return {"warnings": warns, "info": info}
