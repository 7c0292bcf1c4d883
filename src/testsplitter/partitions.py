# partitions.py
from __future__ import annotations

import re
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Set

from .config import DEFAULT_EXTRACTOR_TIMEOUT
from .ui.console import get_console

# Inline partition banner inside a raw test listing, e.g. "Collection: Smoke"
BANNER_RE = re.compile(r"^\s*(?:Collection|Partition):\s*(?P<label>\S(?:.*\S)?)\s*$")


class LabelSource(Protocol):
    """Anything that can report the partition labels declared for one test binary."""

    def labels(self) -> Set[str]:
        ...


# ---------------------------------------------------------------------
# External extractor
# ---------------------------------------------------------------------

@dataclass
class ExternalToolSource:
    """
    Runs a partition extraction tool against the compiled test binary.

    The tool is invoked as `<command...> <test_binary>` and must print one
    label per line on stdout. Any failure to run it is reported as a warning
    and yields no labels, which routes mode selection to class mode.
    """
    command: Sequence[str]
    test_binary: Path
    timeout: int = DEFAULT_EXTRACTOR_TIMEOUT

    def labels(self) -> Set[str]:
        console = get_console()
        argv = [*self.command, str(self.test_binary)]
        console.print_debug(f"Running partition extractor: {shlex.join(argv)}")

        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError:
            console.print_warning(
                f"Partition extractor not found: {self.command[0]}",
                details=["Falling back to class-based splitting."],
            )
            return set()
        except subprocess.TimeoutExpired:
            console.print_warning(
                f"Partition extractor timed out after {self.timeout}s",
                details=[f"binary={self.test_binary}", "Falling back to class-based splitting."],
            )
            return set()
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            details = [f"exit code={e.returncode}", f"binary={self.test_binary}"]
            if stderr:
                details.append(stderr.splitlines()[0])
            details.append("Falling back to class-based splitting.")
            console.print_warning("Partition extractor failed", details=details)
            return set()
        except UnicodeDecodeError as e:
            console.print_warning(
                "Partition extractor output is not valid UTF-8",
                details=[str(e), f"binary={self.test_binary}", "Falling back to class-based splitting."],
            )
            return set()
        except OSError as e:
            console.print_warning(
                "Partition extractor could not be started",
                details=[str(e), "Falling back to class-based splitting."],
            )
            return set()

        found = parse_label_lines(proc.stdout.splitlines())
        if not found:
            console.print_debug(f"Partition extractor reported no labels for {self.test_binary}")
        return found


def parse_label_lines(lines: Iterable[str]) -> Set[str]:
    """One label per line; blank lines are ignored, surrounding whitespace trimmed."""
    return {line.strip() for line in lines if line.strip()}


# ---------------------------------------------------------------------
# Inline banners
# ---------------------------------------------------------------------

@dataclass
class InlineBannerSource:
    """Collects labels from banner lines embedded in the raw listing itself."""
    lines: List[str] = field(default_factory=list)

    def labels(self) -> Set[str]:
        found: Set[str] = set()
        for line in self.lines:
            m = BANNER_RE.match(line)
            if m:
                found.add(m.group("label").strip())
        return found


def select_label_source(
    listing_lines: List[str],
    extractor: Optional[str] = None,
    test_binary: Optional[str | Path] = None,
    timeout: int = DEFAULT_EXTRACTOR_TIMEOUT,
) -> LabelSource:
    """
    Pick the label source by what is available: the external extractor when
    both a command and a binary are given, otherwise inline banners.
    """
    if extractor and test_binary:
        return ExternalToolSource(
            command=shlex.split(extractor),
            test_binary=Path(test_binary),
            timeout=timeout,
        )
    return InlineBannerSource(lines=listing_lines)


def split_skip_list(values: Iterable[str]) -> List[str]:
    """Accepts repeated values and/or ';'-separated strings."""
    out: List[str] = []
    for v in values:
        out.extend(p.strip() for p in v.split(";") if p.strip())
    return out


def filter_labels(labels: Iterable[str], skip: Iterable[str]) -> List[str]:
    """Drop labels that exactly (case-sensitively) match a skip entry; sorted result."""
    skip_set = set(skip)
    return sorted({label for label in labels if label not in skip_set})
