# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SplitError(Exception):
    """
    Structured error for conditions that stop a discovery or matrix pass:
      - clean CLI output
      - names the offending project and condition
    """
    kind: str
    project: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.project:
            lines.append(f"project={self.project}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


# Error kinds
LISTING_NOT_FOUND = "ListingNotFound"
NO_CLASSES_FOUND = "NoClassesFound"
LISTS_DIR_NOT_FOUND = "ListsDirectoryNotFound"
INVALID_LIST_FILE = "InvalidListFile"
INVALID_REGULAR_TESTS = "InvalidRegularTests"
INVALID_LISTING = "InvalidListing"
