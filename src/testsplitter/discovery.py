# discovery.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import DEFAULT_EXTRACTOR_TIMEOUT, METADATA_FILE_SUFFIX
from .listfile import write_list
from .listing import extract_class_names, read_listing, select_mode
from .metadata import ProjectMetadataRecord, write_metadata
from .model import TestListRecord
from .partitions import filter_labels, select_label_source
from .ui.console import get_console


@dataclass(frozen=True)
class DiscoveryResult:
    record: TestListRecord
    list_path: Path
    metadata_path: Optional[Path] = None


def discover(
    listing_path: str | Path,
    project: str,
    *,
    class_prefix: Optional[str] = None,
    skip: Iterable[str] = (),
    extractor: Optional[str] = None,
    test_binary: Optional[str | Path] = None,
    extractor_timeout: int = DEFAULT_EXTRACTOR_TIMEOUT,
) -> TestListRecord:
    """
    Classify one project's raw listing and decide how to split it.

    Raises SplitError when the listing is missing or when neither partitions
    nor classes were found.
    """
    console = get_console()
    prefix = class_prefix or project
    lines = read_listing(listing_path, project)

    source = select_label_source(lines, extractor, test_binary, extractor_timeout)
    labels = source.labels()
    retained = filter_labels(labels, skip)
    skipped = sorted(set(labels) - set(retained))
    if skipped:
        console.print_debug(f"{project}: skipped partitions {skipped}")

    classes = extract_class_names(lines, prefix) if not retained else set()
    return select_mode(project, retained, classes)


def run_discovery(
    listing_path: str | Path,
    project: str,
    output_dir: str | Path,
    *,
    class_prefix: Optional[str] = None,
    skip: Iterable[str] = (),
    extractor: Optional[str] = None,
    test_binary: Optional[str | Path] = None,
    extractor_timeout: int = DEFAULT_EXTRACTOR_TIMEOUT,
    metadata: Optional[ProjectMetadataRecord] = None,
) -> DiscoveryResult:
    """Discover, then write `<project>.tests.list` (and metadata, when there is any to record) to output_dir."""
    record = discover(
        listing_path,
        project,
        class_prefix=class_prefix,
        skip=skip,
        extractor=extractor,
        test_binary=test_binary,
        extractor_timeout=extractor_timeout,
    )
    list_path = write_list(output_dir, record)

    if metadata is None and class_prefix and class_prefix != project:
        # the matrix builder strips class names against this prefix
        metadata = ProjectMetadataRecord(project_name=project, test_class_names_prefix=class_prefix)

    metadata_path = None
    if metadata is not None:
        metadata_path = write_metadata(Path(output_dir) / f"{project}{METADATA_FILE_SUFFIX}", metadata)

    return DiscoveryResult(record=record, list_path=list_path, metadata_path=metadata_path)
