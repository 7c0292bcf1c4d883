# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

COLLECTION = "collection"
CLASS = "class"
UNCOLLECTED = "uncollected"
REGULAR = "regular"

# Synthetic catch-all unit appended to every collection-mode list.
UNCOLLECTED_UNIT = "uncollected:*"


@dataclass(frozen=True)
class TestListRecord:
    """
    The persisted split decision for one project.

    `units` holds partition labels in collection mode and fully-qualified
    class names in class mode, always sorted and de-duplicated.
    """
    __test__ = False  # not a pytest class

    project: str
    mode: str
    units: Tuple[str, ...]

    def __post_init__(self) -> None:
        if self.mode not in (COLLECTION, CLASS):
            raise ValueError(f"Unknown list mode: {self.mode!r}")
        object.__setattr__(self, "units", tuple(sorted(set(self.units))))

    @property
    def collections(self) -> List[str]:
        return list(self.units) if self.mode == COLLECTION else []

    @property
    def classes(self) -> List[str]:
        return list(self.units) if self.mode == CLASS else []


@dataclass
class JobEntry:
    """One schedulable CI unit; `optional` is already reduced to non-default fields."""
    type: str
    project_name: str
    name: str
    shortname: str
    test_project_path: str
    full_class_name: Optional[str] = None
    optional: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type,
            "projectName": self.project_name,
            "name": self.name,
            "shortname": self.shortname,
            "testProjectPath": self.test_project_path,
        }
        if self.full_class_name is not None:
            out["fullClassName"] = self.full_class_name
        out.update(self.optional)
        return out


@dataclass
class JobMatrix:
    entries: List[JobEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"include": [e.to_dict() for e in self.entries]}

    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for e in self.entries:
            out[e.type] = out.get(e.type, 0) + 1
        return out
