# matrix.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import errors
from .config import (
    DEFAULT_JOB_DEFAULTS,
    DEFAULT_NAMING,
    LIST_FILE_SUFFIX,
    MATRIX_FILE_NAME,
    METADATA_FILE_SUFFIX,
    JobDefaults,
    MatrixNaming,
)
from .errors import SplitError
from .filters import ClassFilter, exclude_partitions, include_partition, join_args
from .listfile import read_list
from .metadata import EffectiveMetadata, ProjectMetadataRecord, load_metadata, resolve_metadata
from .model import CLASS, COLLECTION, REGULAR, UNCOLLECTED, JobEntry, JobMatrix, TestListRecord
from .ui.console import get_console


# ---------------------------------------------------------------------
# Sparse emission
# ---------------------------------------------------------------------

def _same_value(value: Any, default: Any) -> bool:
    # list fields: order and duplicates do not matter
    if isinstance(value, (list, tuple, set)) or isinstance(default, (list, tuple, set)):
        if not isinstance(value, (list, tuple, set)) or not isinstance(default, (list, tuple, set)):
            return False
        return set(value) == set(default)
    return value == default


def sparse_fields(values: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only the entries of `values` that differ from `defaults`.

    Keys with no default are always kept. Insertion order of `values` is
    preserved so the emitted JSON is stable.
    """
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key in defaults and _same_value(value, defaults[key]):
            continue
        out[key] = value
    return out


def _job_values(meta: EffectiveMetadata, extra_test_args: str, uncollected: bool = False) -> Dict[str, Any]:
    return {
        "extraTestArgs": extra_test_args,
        "requiresNugets": meta.requires_nugets,
        "requiresTestSdk": meta.requires_test_sdk,
        "enablePlaywrightInstall": meta.enable_playwright_install,
        "testSessionTimeout": (
            meta.uncollected_tests_session_timeout if uncollected else meta.test_session_timeout
        ),
        "testHangTimeout": (
            meta.uncollected_tests_hang_timeout if uncollected else meta.test_hang_timeout
        ),
        "supportedOSes": list(meta.supported_oses),
    }


# ---------------------------------------------------------------------
# Entries per project
# ---------------------------------------------------------------------

def class_short_name(full_class_name: str, prefix: str) -> str:
    """Strip `<prefix>.` when it is a strict prefix; otherwise keep the full name."""
    lead = prefix + "."
    if prefix and full_class_name.startswith(lead) and len(full_class_name) > len(lead):
        return full_class_name[len(lead):]
    return full_class_name


def build_split_entries(
    record: TestListRecord,
    meta: EffectiveMetadata,
    defaults: JobDefaults = DEFAULT_JOB_DEFAULTS,
    naming: MatrixNaming = DEFAULT_NAMING,
) -> List[JobEntry]:
    """Turn one project's list record into collection/uncollected or class entries."""
    entries: List[JobEntry] = []
    default_fields = defaults.job_fields()
    short = naming.short_name(meta.project_name)

    if record.mode == COLLECTION:
        for label in record.collections:
            args = join_args(include_partition(label).to_args(), meta.extra_test_args)
            entries.append(JobEntry(
                type=COLLECTION,
                project_name=meta.project_name,
                name=label,
                shortname=f"{short}-{label}",
                test_project_path=meta.test_project_path,
                optional=sparse_fields(_job_values(meta, args), default_fields),
            ))

        args = join_args(exclude_partitions(record.collections).to_args(), meta.extra_test_args)
        entries.append(JobEntry(
            type=UNCOLLECTED,
            project_name=meta.project_name,
            name=naming.uncollected_name,
            shortname=f"{short}-{naming.uncollected_suffix}",
            test_project_path=meta.test_project_path,
            optional=sparse_fields(
                _job_values(meta, args, uncollected=True),
                defaults.uncollected_job_fields(),
            ),
        ))
        return entries

    for class_name in record.classes:
        args = join_args(ClassFilter(class_name).to_args(), meta.extra_test_args)
        short_class = class_short_name(class_name, meta.test_class_names_prefix)
        entries.append(JobEntry(
            type=CLASS,
            project_name=meta.project_name,
            name=short_class,
            shortname=short_class,
            test_project_path=meta.test_project_path,
            full_class_name=class_name,
            optional=sparse_fields(_job_values(meta, args), default_fields),
        ))
    return entries


def regular_entry(
    meta: EffectiveMetadata,
    short_name: Optional[str] = None,
    defaults: JobDefaults = DEFAULT_JOB_DEFAULTS,
    naming: MatrixNaming = DEFAULT_NAMING,
) -> JobEntry:
    short = short_name or naming.short_name(meta.project_name)
    return JobEntry(
        type=REGULAR,
        project_name=meta.project_name,
        name=short,
        shortname=short,
        test_project_path=meta.test_project_path,
        optional=sparse_fields(_job_values(meta, meta.extra_test_args), defaults.job_fields()),
    )


# ---------------------------------------------------------------------
# Regular (unsplit) projects
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class RegularProject:
    project_name: str
    short_name: Optional[str]
    record: Optional[ProjectMetadataRecord]


def load_regular_projects_json(path: str | Path) -> List[RegularProject]:
    """
    Rich description: a JSON array of objects, each with `projectName` (or
    `project`), optional `shortName`, and any metadata key.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SplitError(
            kind=errors.INVALID_REGULAR_TESTS,
            project=None,
            message="Could not read regular test projects JSON",
            details={"path": str(p), "error": str(e)},
        ) from e

    if not isinstance(data, list):
        raise SplitError(
            kind=errors.INVALID_REGULAR_TESTS,
            project=None,
            message="Regular test projects JSON must be an array",
            details={"path": str(p)},
        )

    projects: List[RegularProject] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise SplitError(
                kind=errors.INVALID_REGULAR_TESTS,
                project=None,
                message="Regular test project entry must be an object",
                details={"path": str(p), "index": i},
            )
        name = item.get("projectName") or item.get("project")
        if not name:
            raise SplitError(
                kind=errors.INVALID_REGULAR_TESTS,
                project=None,
                message="Regular test project entry has no projectName",
                details={"path": str(p), "index": i},
            )
        try:
            record = ProjectMetadataRecord.model_validate({**item, "projectName": name})
        except ValidationError as e:
            raise SplitError(
                kind=errors.INVALID_REGULAR_TESTS,
                project=name,
                message="Invalid regular test project entry",
                details={"path": str(p), "error": str(e)},
            ) from e
        projects.append(RegularProject(
            project_name=name,
            short_name=item.get("shortName") or None,
            record=record,
        ))
    return projects


def load_regular_projects_list(path: str | Path, naming: MatrixNaming = DEFAULT_NAMING) -> List[RegularProject]:
    """Legacy input: bare short names, one per line (';' also separates)."""
    text = Path(path).read_text(encoding="utf-8")
    names = [n.strip() for n in re.split(r"[;\r\n]", text) if n.strip()]
    return [
        RegularProject(project_name=naming.project_name(n), short_name=n, record=None)
        for n in names
    ]


def load_regular_projects(
    json_path: Optional[str | Path] = None,
    list_path: Optional[str | Path] = None,
    naming: MatrixNaming = DEFAULT_NAMING,
) -> List[RegularProject]:
    """The JSON description wins wholesale when present; otherwise the legacy name list."""
    console = get_console()
    if json_path and Path(json_path).is_file():
        console.print_debug(f"Using regular test projects from {json_path}")
        return load_regular_projects_json(json_path)
    if list_path and Path(list_path).is_file():
        console.print_debug(f"Using legacy regular test project names from {list_path}")
        return load_regular_projects_list(list_path, naming)
    return []


# ---------------------------------------------------------------------
# Whole matrix
# ---------------------------------------------------------------------

def find_list_files(lists_dir: str | Path) -> List[Path]:
    d = Path(lists_dir)
    if not d.is_dir():
        raise SplitError(
            kind=errors.LISTS_DIR_NOT_FOUND,
            project=None,
            message="Test lists directory not found",
            details={"path": str(d)},
        )
    return sorted(p for p in d.glob(f"*{LIST_FILE_SUFFIX}") if p.is_file())


def build_matrix(
    lists_dir: str | Path,
    *,
    regular_tests_json: Optional[str | Path] = None,
    regular_tests_list: Optional[str | Path] = None,
    defaults: JobDefaults = DEFAULT_JOB_DEFAULTS,
    naming: MatrixNaming = DEFAULT_NAMING,
) -> JobMatrix:
    """
    Build the combined matrix from every `<project>.tests.list` in lists_dir.

    No list files at all is a valid outcome and yields an empty matrix.
    """
    console = get_console()
    list_files = find_list_files(lists_dir)
    if not list_files:
        console.print_warning(f"No {LIST_FILE_SUFFIX} files found in {lists_dir}; writing empty matrix")
        return JobMatrix()

    matrix = JobMatrix()
    for list_path in list_files:
        record = read_list(list_path)
        meta_path = list_path.with_name(f"{record.project}{METADATA_FILE_SUFFIX}")
        meta = resolve_metadata(record.project, load_metadata(meta_path), defaults, naming)
        entries = build_split_entries(record, meta, defaults, naming)
        console.print_debug(f"{record.project}: {record.mode} mode, {len(entries)} entries")
        matrix.entries.extend(entries)

    for project in load_regular_projects(regular_tests_json, regular_tests_list, naming):
        meta = resolve_metadata(project.project_name, project.record, defaults, naming)
        matrix.entries.append(regular_entry(meta, project.short_name, defaults, naming))

    return matrix


def write_matrix(matrix: JobMatrix, output_dir: str | Path) -> Path:
    out = Path(output_dir) / MATRIX_FILE_NAME
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8", newline="\n") as f:
        f.write(json.dumps(matrix.to_dict(), indent=2) + "\n")
    return out
