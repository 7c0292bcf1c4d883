# config.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

DEFAULT_SUPPORTED_OSES: Tuple[str, ...] = ("windows", "linux", "macos")

LIST_FILE_SUFFIX = ".tests.list"
METADATA_FILE_SUFFIX = ".tests.metadata.json"
MATRIX_FILE_NAME = "combined-tests-matrix.json"

DEFAULT_EXTRACTOR_TIMEOUT = 300  # seconds


@dataclass(frozen=True)
class JobDefaults:
    """
    Global job defaults. Every optional JobEntry field is compared against
    these values; only differences end up in the matrix.

    Not read from the environment: pass a value explicitly to the resolver
    and the builder.
    """
    extra_test_args: str = ""
    requires_nugets: bool = False
    requires_test_sdk: bool = False
    enable_playwright_install: bool = False
    test_session_timeout: str = "20m"
    test_hang_timeout: str = "10m"
    uncollected_tests_session_timeout: str = "15m"
    uncollected_tests_hang_timeout: str = "10m"
    supported_oses: Tuple[str, ...] = DEFAULT_SUPPORTED_OSES

    def job_fields(self) -> Dict[str, Any]:
        """Optional JobEntry fields as they appear in the matrix (camelCase)."""
        return {
            "extraTestArgs": self.extra_test_args,
            "requiresNugets": self.requires_nugets,
            "requiresTestSdk": self.requires_test_sdk,
            "enablePlaywrightInstall": self.enable_playwright_install,
            "testSessionTimeout": self.test_session_timeout,
            "testHangTimeout": self.test_hang_timeout,
            "supportedOSes": list(self.supported_oses),
        }

    def uncollected_job_fields(self) -> Dict[str, Any]:
        """Same as job_fields(), but the timeouts are the uncollected ones."""
        fields = self.job_fields()
        fields["testSessionTimeout"] = self.uncollected_tests_session_timeout
        fields["testHangTimeout"] = self.uncollected_tests_hang_timeout
        return fields


@dataclass(frozen=True)
class MatrixNaming:
    """How short names and default project paths are derived from a project name."""
    org_prefix: str = "Aspire."
    tests_suffix: str = ".Tests"
    project_path_template: str = "tests/{project}/{project}.csproj"
    uncollected_name: str = "Uncollected"
    uncollected_suffix: str = "uncollected"

    def short_name(self, project_name: str) -> str:
        short = project_name
        if short.startswith(self.org_prefix):
            short = short[len(self.org_prefix):]
        if short.endswith(self.tests_suffix):
            short = short[: -len(self.tests_suffix)]
        return short

    def project_name(self, short_name: str) -> str:
        return f"{self.org_prefix}{short_name}{self.tests_suffix}"

    def project_path(self, project_name: str) -> str:
        return self.project_path_template.format(project=project_name)


DEFAULT_JOB_DEFAULTS = JobDefaults()
DEFAULT_NAMING = MatrixNaming()
