"""Tests for matrix building, sparse emission and the partition property."""

import json

import pytest

from testsplitter.config import JobDefaults
from testsplitter.errors import INVALID_LIST_FILE, LISTS_DIR_NOT_FOUND, SplitError
from testsplitter.filters import ClassFilter, exclude_partitions, include_partition
from testsplitter.listfile import write_list
from testsplitter.matrix import (
    build_matrix,
    build_split_entries,
    class_short_name,
    regular_entry,
    sparse_fields,
    write_matrix,
)
from testsplitter.metadata import ProjectMetadataRecord, resolve_metadata
from testsplitter.model import CLASS, COLLECTION, TestListRecord


IDENTITY = {"type", "projectName", "name", "shortname", "testProjectPath"}


# ============================================================================
# Sparse emission
# ============================================================================


def test_sparse_fields_drops_defaults_and_compares_lists_as_sets():
    defaults = JobDefaults().job_fields()
    values = dict(defaults, supportedOSes=["macos", "linux", "windows", "linux"])
    assert sparse_fields(values, defaults) == {}


def test_sparse_fields_keeps_single_difference():
    defaults = JobDefaults().job_fields()
    values = dict(defaults, requiresNugets=True)
    assert sparse_fields(values, defaults) == {"requiresNugets": True}


def test_regular_entry_with_defaults_has_only_identity_fields():
    entry = regular_entry(resolve_metadata("Aspire.Foo.Tests")).to_dict()
    assert set(entry) == IDENTITY
    assert entry["shortname"] == "Foo"
    assert entry["type"] == "regular"


def test_changing_one_field_adds_one_key():
    meta = resolve_metadata("Aspire.Foo.Tests", ProjectMetadataRecord(supported_oses=["linux"]))
    entry = regular_entry(meta).to_dict()
    assert set(entry) - IDENTITY == {"supportedOSes"}
    assert entry["supportedOSes"] == ["linux"]


# ============================================================================
# Split entries
# ============================================================================


def test_class_short_name_strips_only_strict_prefix():
    assert class_short_name("Org.Foo.Tests.ClassA", "Org.Foo.Tests") == "ClassA"
    assert class_short_name("Org.Other.ClassA", "Org.Foo.Tests") == "Org.Other.ClassA"
    assert class_short_name("Org.Foo.Tests.", "Org.Foo.Tests") == "Org.Foo.Tests."


def test_class_mode_entries():
    record = TestListRecord(
        project="Org.Foo.Tests",
        mode=CLASS,
        units=("Org.Foo.Tests.ClassB", "Org.Foo.Tests.ClassA", "Elsewhere.ClassC"),
    )
    entries = [e.to_dict() for e in build_split_entries(record, resolve_metadata("Org.Foo.Tests"))]

    assert [e["fullClassName"] for e in entries] == [
        "Elsewhere.ClassC",
        "Org.Foo.Tests.ClassA",
        "Org.Foo.Tests.ClassB",
    ]
    assert [e["shortname"] for e in entries] == ["Elsewhere.ClassC", "ClassA", "ClassB"]
    assert entries[1]["extraTestArgs"] == '--filter-class "Org.Foo.Tests.ClassA"'
    assert all(e["type"] == "class" for e in entries)


def test_collection_mode_entries_append_project_args():
    record = TestListRecord(project="Aspire.Hosting.Tests", mode=COLLECTION, units=("Smoke", "Basic"))
    meta = resolve_metadata("Aspire.Hosting.Tests", ProjectMetadataRecord(extra_test_args="--verbose"))
    entries = [e.to_dict() for e in build_split_entries(record, meta)]

    assert [(e["type"], e["name"], e["shortname"]) for e in entries] == [
        ("collection", "Basic", "Hosting-Basic"),
        ("collection", "Smoke", "Hosting-Smoke"),
        ("uncollected", "Uncollected", "Hosting-uncollected"),
    ]
    assert entries[0]["extraTestArgs"] == '--filter-trait "Partition=Basic" --verbose'
    assert entries[2]["extraTestArgs"] == (
        '--filter-not-trait "Partition=Basic" --filter-not-trait "Partition=Smoke" --verbose'
    )
    assert "fullClassName" not in entries[0]


def test_uncollected_entry_compares_against_uncollected_defaults():
    record = TestListRecord(project="P", mode=COLLECTION, units=("Smoke",))
    entries = [e.to_dict() for e in build_split_entries(record, resolve_metadata("P"))]
    uncollected = entries[-1]
    assert "testSessionTimeout" not in uncollected
    assert "testHangTimeout" not in uncollected
    assert set(uncollected) - IDENTITY == {"extraTestArgs"}


# ============================================================================
# Partition property
# ============================================================================


PARTITION_UNIVERSE = ["Smoke", "Nightly", "A", "B", "C", "Skipped"]


@pytest.mark.parametrize("retained", [(), ("Smoke",), ("Smoke", "Nightly"), ("A", "B", "C")])
def test_every_test_matches_exactly_one_filter(retained):
    filters = [include_partition(label) for label in retained] + [exclude_partitions(retained)]
    # each test carries at most one partition label
    candidates = [set()] + [{label} for label in PARTITION_UNIVERSE]
    for labels in candidates:
        hits = sum(1 for f in filters if f.matches(labels))
        assert hits == 1, (retained, labels)


def test_class_filter_selects_only_its_class():
    f = ClassFilter("Org.Foo.ClassA")
    assert f.matches("Org.Foo.ClassA.Test1")
    assert not f.matches("Org.Foo.ClassAB.Test1")


# ============================================================================
# Whole matrix
# ============================================================================


def test_missing_lists_dir_is_fatal(tmp_path):
    with pytest.raises(SplitError) as exc:
        build_matrix(tmp_path / "missing")
    assert exc.value.kind == LISTS_DIR_NOT_FOUND


def test_empty_lists_dir_writes_empty_matrix(tmp_path):
    lists = tmp_path / "lists"
    lists.mkdir()
    matrix = build_matrix(lists)
    out = write_matrix(matrix, tmp_path / "out")
    assert out.name == "combined-tests-matrix.json"
    assert json.loads(out.read_text()) == {"include": []}


def test_collection_list_with_session_timeout_override(tmp_path):
    lists = tmp_path / "lists"
    write_list(lists, TestListRecord(project="Org.Foo.Tests", mode=COLLECTION, units=("Smoke",)))
    (lists / "Org.Foo.Tests.tests.metadata.json").write_text(json.dumps({"testSessionTimeout": "30m"}))

    include = build_matrix(lists).to_dict()["include"]

    assert len(include) == 2
    smoke, uncollected = include
    assert smoke["type"] == "collection"
    assert smoke["name"] == "Smoke"
    assert smoke["extraTestArgs"] == '--filter-trait "Partition=Smoke"'
    assert smoke["testSessionTimeout"] == "30m"
    assert uncollected["type"] == "uncollected"
    assert uncollected["extraTestArgs"] == '--filter-not-trait "Partition=Smoke"'
    assert uncollected["testSessionTimeout"] == "30m"


def test_projects_are_emitted_in_file_name_order(tmp_path):
    lists = tmp_path / "lists"
    write_list(lists, TestListRecord(project="B.Tests", mode=CLASS, units=("B.Tests.X",)))
    write_list(lists, TestListRecord(project="A.Tests", mode=CLASS, units=("A.Tests.Y",)))
    names = [e["projectName"] for e in build_matrix(lists).to_dict()["include"]]
    assert names == ["A.Tests", "B.Tests"]


def test_regular_json_wins_over_legacy_list(tmp_path):
    lists = tmp_path / "lists"
    write_list(lists, TestListRecord(project="A.Tests", mode=CLASS, units=("A.Tests.Y",)))
    rich = tmp_path / "regular.json"
    rich.write_text(json.dumps([
        {"project": "Aspire.Redis.Tests", "shortName": "Redis", "requiresNugets": "true"},
    ]))
    legacy = tmp_path / "regular.txt"
    legacy.write_text("Milvus\nKafka\n")

    regular = [e for e in build_matrix(
        lists, regular_tests_json=rich, regular_tests_list=legacy
    ).to_dict()["include"] if e["type"] == "regular"]

    assert regular == [{
        "type": "regular",
        "projectName": "Aspire.Redis.Tests",
        "name": "Redis",
        "shortname": "Redis",
        "testProjectPath": "tests/Aspire.Redis.Tests/Aspire.Redis.Tests.csproj",
        "requiresNugets": True,
    }]


def test_legacy_list_used_when_json_missing(tmp_path):
    lists = tmp_path / "lists"
    write_list(lists, TestListRecord(project="A.Tests", mode=CLASS, units=("A.Tests.Y",)))
    legacy = tmp_path / "regular.txt"
    legacy.write_text("Milvus;Kafka\n")

    regular = [e for e in build_matrix(
        lists, regular_tests_json=tmp_path / "missing.json", regular_tests_list=legacy
    ).to_dict()["include"] if e["type"] == "regular"]

    assert [(e["projectName"], e["shortname"]) for e in regular] == [
        ("Aspire.Milvus.Tests", "Milvus"),
        ("Aspire.Kafka.Tests", "Kafka"),
    ]
    assert all(set(e) == IDENTITY for e in regular)


def test_matrix_is_byte_identical_across_runs(tmp_path):
    lists = tmp_path / "lists"
    write_list(lists, TestListRecord(project="P", mode=COLLECTION, units=("B", "A")))
    first = write_matrix(build_matrix(lists), tmp_path / "one").read_bytes()
    second = write_matrix(build_matrix(lists), tmp_path / "two").read_bytes()
    assert first == second


def test_malformed_list_file_stops_the_build(tmp_path):
    lists = tmp_path / "lists"
    lists.mkdir()
    (lists / "Org.Foo.Tests.tests.list").write_text("class:Org.Foo.ClassA\ncollection:Smoke\n")
    with pytest.raises(SplitError) as exc:
        build_matrix(lists)
    assert exc.value.kind == INVALID_LIST_FILE
    assert exc.value.project == "Org.Foo.Tests"
