"""Console output formatting utilities for testsplitter."""

from __future__ import annotations

import sys
from typing import Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_discovery_result(
        self,
        project: str,
        mode: str,
        unit_count: int,
        list_path: str,
    ) -> None:
        """Print the outcome of one discovery pass."""
        print("\nDISCOVERY COMPLETE")
        print(f"Project: {project}")
        print(f"Mode: {mode}")
        print(f"Units: {unit_count}")
        print(f"List file: {list_path}")

    def print_matrix_summary(self, counts: dict[str, int], output: str) -> None:
        """Print a per-type summary of generated matrix entries."""
        print("\n" + "=" * 40)
        print("MATRIX")
        print("=" * 40)
        total = sum(counts.values())
        for entry_type, count in counts.items():
            print(f"  {entry_type}: {count}")
        print(f"  total: {total}")
        print(f"Written to: {output}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_warning(self, message: str, details: Optional[list[str]] = None) -> None:
        """Print a non-fatal warning; processing continues."""
        print(f"WARNING: {message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
