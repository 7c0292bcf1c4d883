# metadata.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import DEFAULT_JOB_DEFAULTS, DEFAULT_NAMING, JobDefaults, MatrixNaming
from .ui.console import get_console


# ---------------------------------------------------------------------
# Stored record (<project>.tests.metadata.json)
# ---------------------------------------------------------------------

class ProjectMetadataRecord(BaseModel):
    """
    Per-project overrides as written next to the list file.

    Every field is optional; None means "not set, use the default".
    Unknown keys are ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    project_name: Optional[str] = Field(default=None, alias="projectName")
    test_class_names_prefix: Optional[str] = Field(default=None, alias="testClassNamesPrefix")
    test_project_path: Optional[str] = Field(default=None, alias="testProjectPath")
    extra_test_args: Optional[str] = Field(default=None, alias="extraTestArgs")
    requires_nugets: Optional[bool] = Field(default=None, alias="requiresNugets")
    requires_test_sdk: Optional[bool] = Field(default=None, alias="requiresTestSdk")
    enable_playwright_install: Optional[bool] = Field(default=None, alias="enablePlaywrightInstall")
    test_session_timeout: Optional[str] = Field(default=None, alias="testSessionTimeout")
    test_hang_timeout: Optional[str] = Field(default=None, alias="testHangTimeout")
    uncollected_tests_session_timeout: Optional[str] = Field(
        default=None, alias="uncollectedTestsSessionTimeout"
    )
    uncollected_tests_hang_timeout: Optional[str] = Field(
        default=None, alias="uncollectedTestsHangTimeout"
    )
    supported_oses: Optional[List[str]] = Field(default=None, alias="supportedOSes")

    @field_validator(
        "project_name",
        "test_class_names_prefix",
        "test_project_path",
        "test_session_timeout",
        "test_hang_timeout",
        "uncollected_tests_session_timeout",
        "uncollected_tests_hang_timeout",
        "requires_nugets",
        "requires_test_sdk",
        "enable_playwright_install",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, v: Any) -> Any:
        # MSBuild writes "" for properties that were never set
        if isinstance(v, str) and not v.strip():
            return None
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("supported_oses", mode="before")
    @classmethod
    def _split_oses(cls, v: Any) -> Any:
        if isinstance(v, str):
            parts = [p.strip() for p in re.split(r"[;,]", v)]
            return [p for p in parts if p] or None
        return v

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def load_metadata(path: str | Path) -> Optional[ProjectMetadataRecord]:
    """
    Load a per-project metadata record.

    Returns None when the file does not exist, or when it cannot be parsed
    (a warning is printed and the caller falls back to defaults).
    """
    p = Path(path)
    if not p.exists():
        return None

    console = get_console()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        console.print_warning(f"Could not read metadata file {p}; using defaults", details=[str(e)])
        return None

    if not isinstance(data, dict):
        console.print_warning(
            f"Metadata file {p} is not a JSON object; using defaults",
            details=[f"got {type(data).__name__}"],
        )
        return None

    try:
        return ProjectMetadataRecord.model_validate(data)
    except ValidationError as e:
        console.print_warning(f"Invalid metadata in {p}; using defaults", details=[str(e)])
        return None


def write_metadata(path: str | Path, record: ProjectMetadataRecord) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(record.to_json_dict(), indent=2) + "\n", encoding="utf-8")
    return p


# ---------------------------------------------------------------------
# Effective view
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class EffectiveMetadata:
    """Every field filled in: project record layered over JobDefaults."""
    project_name: str
    test_class_names_prefix: str
    test_project_path: str
    extra_test_args: str
    requires_nugets: bool
    requires_test_sdk: bool
    enable_playwright_install: bool
    test_session_timeout: str
    test_hang_timeout: str
    uncollected_tests_session_timeout: str
    uncollected_tests_hang_timeout: str
    supported_oses: Tuple[str, ...]


def _pick(value, fallback):
    return fallback if value is None else value


def resolve_metadata(
    project_name: str,
    record: Optional[ProjectMetadataRecord] = None,
    defaults: JobDefaults = DEFAULT_JOB_DEFAULTS,
    naming: MatrixNaming = DEFAULT_NAMING,
) -> EffectiveMetadata:
    """
    Merge a project record over the defaults, field by field.

    Uncollected timeouts fall back in two steps: the project's uncollected
    value, then the project's general value, then the global uncollected
    default. Neither `record` nor `defaults` is modified.
    """
    r = record or ProjectMetadataRecord()
    name = _pick(r.project_name, project_name)

    oses: Tuple[str, ...]
    if r.supported_oses:
        # keep first-seen order, drop duplicates
        oses = tuple(dict.fromkeys(r.supported_oses))
    else:
        oses = tuple(defaults.supported_oses)

    return EffectiveMetadata(
        project_name=name,
        test_class_names_prefix=_pick(r.test_class_names_prefix, name),
        test_project_path=_pick(r.test_project_path, naming.project_path(name)),
        extra_test_args=_pick(r.extra_test_args, defaults.extra_test_args),
        requires_nugets=_pick(r.requires_nugets, defaults.requires_nugets),
        requires_test_sdk=_pick(r.requires_test_sdk, defaults.requires_test_sdk),
        enable_playwright_install=_pick(r.enable_playwright_install, defaults.enable_playwright_install),
        test_session_timeout=_pick(r.test_session_timeout, defaults.test_session_timeout),
        test_hang_timeout=_pick(r.test_hang_timeout, defaults.test_hang_timeout),
        uncollected_tests_session_timeout=_pick(
            r.uncollected_tests_session_timeout,
            _pick(r.test_session_timeout, defaults.uncollected_tests_session_timeout),
        ),
        uncollected_tests_hang_timeout=_pick(
            r.uncollected_tests_hang_timeout,
            _pick(r.test_hang_timeout, defaults.uncollected_tests_hang_timeout),
        ),
        supported_oses=oses,
    )
