# listfile.py
from __future__ import annotations

from pathlib import Path
from typing import List

from . import errors
from .config import LIST_FILE_SUFFIX
from .errors import SplitError
from .model import CLASS, COLLECTION, UNCOLLECTED_UNIT, TestListRecord

COLLECTION_PREFIX = "collection:"
CLASS_PREFIX = "class:"


def list_file_path(output_dir: str | Path, project: str) -> Path:
    return Path(output_dir) / f"{project}{LIST_FILE_SUFFIX}"


def project_from_list_path(path: str | Path) -> str:
    name = Path(path).name
    if name.endswith(LIST_FILE_SUFFIX):
        return name[: -len(LIST_FILE_SUFFIX)]
    return Path(path).stem


def render_list(record: TestListRecord) -> str:
    if record.mode == COLLECTION:
        lines = [f"{COLLECTION_PREFIX}{label}" for label in record.units]
        lines.append(UNCOLLECTED_UNIT)
    else:
        lines = [f"{CLASS_PREFIX}{name}" for name in record.units]
    return "\n".join(lines) + "\n"


def write_list(output_dir: str | Path, record: TestListRecord) -> Path:
    path = list_file_path(output_dir, record.project)
    path.parent.mkdir(parents=True, exist_ok=True)
    # newline="\n" keeps files byte-identical across platforms
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(render_list(record))
    return path


def parse_list(text: str, project: str) -> TestListRecord:
    """
    Parse list file contents. The first non-blank line decides the mode;
    a line of the other kind is an error.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise SplitError(
            kind=errors.INVALID_LIST_FILE,
            project=project,
            message="List file is empty",
        )

    if lines[0].startswith(CLASS_PREFIX):
        mode, prefix = CLASS, CLASS_PREFIX
    elif lines[0].startswith(COLLECTION_PREFIX) or lines[0] == UNCOLLECTED_UNIT:
        mode, prefix = COLLECTION, COLLECTION_PREFIX
    else:
        raise SplitError(
            kind=errors.INVALID_LIST_FILE,
            project=project,
            message="Unrecognized first line in list file",
            details={"line": lines[0]},
        )

    units: List[str] = []
    for line in lines:
        if mode == COLLECTION and line == UNCOLLECTED_UNIT:
            continue
        if not line.startswith(prefix):
            raise SplitError(
                kind=errors.INVALID_LIST_FILE,
                project=project,
                message=f"List file mixes {mode} lines with other entries",
                details={"line": line},
            )
        value = line[len(prefix):].strip()
        if value:
            units.append(value)

    return TestListRecord(project=project, mode=mode, units=tuple(units))


def read_list(path: str | Path) -> TestListRecord:
    p = Path(path)
    project = project_from_list_path(p)
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SplitError(
            kind=errors.INVALID_LIST_FILE,
            project=project,
            message="List file is not valid UTF-8",
            details={"path": str(p), "error": str(e)},
        ) from e
    return parse_list(text, project)
