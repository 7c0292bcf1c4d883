# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from . import errors
from .config import DEFAULT_EXTRACTOR_TIMEOUT
from .discovery import run_discovery
from .errors import SplitError
from .matrix import build_matrix, write_matrix
from .metadata import ProjectMetadataRecord
from .partitions import split_skip_list
from .ui.console import Console, set_console, get_console


ERROR_HINTS = {
    errors.NO_CLASSES_FOUND: "Check that --class-prefix matches the namespace of the test classes:\n  testsplitter discover ... --class-prefix My.Project.Tests",
    errors.LISTING_NOT_FOUND: "Generate the listing first (e.g. run the test binary with --list-tests) and pass it via --listing.",
    errors.LISTS_DIR_NOT_FOUND: "Run `testsplitter discover` for each split project before building the matrix.",
}


def _fail(ctx, err: SplitError) -> None:
    console = get_console()
    details = [f"{k}: {v}" for k, v in err.details.items()]
    title = f"{err.kind} ({err.project})" if err.project else err.kind
    console.print_error(title, err.message, details=details or None, suggestion=ERROR_HINTS.get(err.kind))
    if ctx.obj.get("debug", False):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """testsplitter: split test projects into CI jobs and build the job matrix."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--listing", required=True, type=click.Path(path_type=Path), help="Raw test listing, one test per line")
@click.option("--project-name", required=True, help="Test project name, e.g. Aspire.Hosting.Tests")
@click.option("--output-dir", required=True, type=click.Path(path_type=Path), help="Where to write the list file")
@click.option("--class-prefix", default=None, help="Namespace prefix for test classes (defaults to project name)")
@click.option("--skip", "skip", multiple=True, help="Partition to ignore; repeatable, ';'-separated accepted")
@click.option("--extractor", default=None, help="Partition extractor command; the test binary is appended")
@click.option("--test-binary", default=None, type=click.Path(path_type=Path), help="Compiled test binary for the extractor")
@click.option("--extractor-timeout", default=DEFAULT_EXTRACTOR_TIMEOUT, show_default=True, type=int, help="Seconds")
@click.option("--test-project-path", default=None, help="Project path recorded in metadata")
@click.option("--extra-test-args", default=None, help="Extra arguments passed to every job of this project")
@click.option("--requires-nugets/--no-requires-nugets", default=None)
@click.option("--requires-test-sdk/--no-requires-test-sdk", default=None)
@click.option("--enable-playwright-install/--no-enable-playwright-install", default=None)
@click.option("--test-session-timeout", default=None)
@click.option("--test-hang-timeout", default=None)
@click.option("--uncollected-session-timeout", default=None)
@click.option("--uncollected-hang-timeout", default=None)
@click.option("--supported-os", "supported_oses", multiple=True, help="Repeatable: windows, linux, macos")
@click.pass_context
def discover(
    ctx,
    listing,
    project_name,
    output_dir,
    class_prefix,
    skip,
    extractor,
    test_binary,
    extractor_timeout,
    test_project_path,
    extra_test_args,
    requires_nugets,
    requires_test_sdk,
    enable_playwright_install,
    test_session_timeout,
    test_hang_timeout,
    uncollected_session_timeout,
    uncollected_hang_timeout,
    supported_oses,
):
    """Decide how one test project is split and write its .tests.list file."""
    console = get_console()

    metadata = ProjectMetadataRecord(
        project_name=project_name,
        test_class_names_prefix=class_prefix,
        test_project_path=test_project_path,
        extra_test_args=extra_test_args,
        requires_nugets=requires_nugets,
        requires_test_sdk=requires_test_sdk,
        enable_playwright_install=enable_playwright_install,
        test_session_timeout=test_session_timeout,
        test_hang_timeout=test_hang_timeout,
        uncollected_tests_session_timeout=uncollected_session_timeout,
        uncollected_tests_hang_timeout=uncollected_hang_timeout,
        supported_oses=list(supported_oses) or None,
    )

    try:
        result = run_discovery(
            listing,
            project_name,
            output_dir,
            class_prefix=class_prefix,
            skip=split_skip_list(skip),
            extractor=extractor,
            test_binary=test_binary,
            extractor_timeout=extractor_timeout,
            metadata=metadata,
        )
    except SplitError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_discovery_result(
        project=project_name,
        mode=result.record.mode,
        unit_count=len(result.record.units),
        list_path=str(result.list_path),
    )


@cli.command("build-matrix")
@click.option("--lists-dir", required=True, type=click.Path(path_type=Path), help="Directory holding *.tests.list files")
@click.option("--output-dir", required=True, type=click.Path(path_type=Path), help="Where to write combined-tests-matrix.json")
@click.option("--regular-tests-json", default=None, type=click.Path(path_type=Path), help="Rich description of unsplit projects")
@click.option("--regular-tests-list", default=None, type=click.Path(path_type=Path), help="Legacy list of unsplit project short names")
@click.pass_context
def build_matrix_cmd(ctx, lists_dir, output_dir, regular_tests_json, regular_tests_list):
    """Combine every .tests.list file into one CI job matrix."""
    console = get_console()

    try:
        matrix = build_matrix(
            lists_dir,
            regular_tests_json=regular_tests_json,
            regular_tests_list=regular_tests_list,
        )
        out = write_matrix(matrix, output_dir)
    except SplitError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_matrix_summary(matrix.counts(), str(out))


if __name__ == "__main__":
    cli()
