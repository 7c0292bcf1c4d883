# listing.py
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Set

from . import errors
from .errors import SplitError
from .model import CLASS, COLLECTION, TestListRecord


def read_listing(path: str | Path, project: str) -> List[str]:
    """Read a raw test listing (one test per line). Missing file is fatal."""
    p = Path(path)
    if not p.is_file():
        raise SplitError(
            kind=errors.LISTING_NOT_FOUND,
            project=project,
            message="Test listing file not found",
            details={"path": str(p)},
        )
    try:
        return p.read_text(encoding="utf-8").splitlines()
    except UnicodeDecodeError as e:
        raise SplitError(
            kind=errors.INVALID_LISTING,
            project=project,
            message="Test listing is not valid UTF-8",
            details={"path": str(p), "error": str(e)},
        ) from e


def class_name_pattern(prefix: str) -> re.Pattern:
    """
    `<prefix>.<Segment>.<rest>` anchored at line start; captures Segment.

    Lines that are just `<prefix>.<Segment>` (no test member) do not match.
    """
    return re.compile(r"^\s*" + re.escape(prefix) + r"\.([^.\s(]+)\.")


def extract_class_names(lines: Iterable[str], prefix: str) -> Set[str]:
    pattern = class_name_pattern(prefix)
    found: Set[str] = set()
    for line in lines:
        m = pattern.match(line)
        if m:
            found.add(f"{prefix}.{m.group(1)}")
    return found


def select_mode(
    project: str,
    labels: Iterable[str],
    classes: Iterable[str],
) -> TestListRecord:
    """
    Collection mode iff any (already filtered) label remains, otherwise class
    mode. Class mode with no classes at all is fatal for the project.
    """
    label_list = sorted(set(labels))
    if label_list:
        return TestListRecord(project=project, mode=COLLECTION, units=tuple(label_list))

    class_list = sorted(set(classes))
    if not class_list:
        raise SplitError(
            kind=errors.NO_CLASSES_FOUND,
            project=project,
            message="No partitions and no test classes found; nothing to schedule",
        )
    return TestListRecord(project=project, mode=CLASS, units=tuple(class_list))
