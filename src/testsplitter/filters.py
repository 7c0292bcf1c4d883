# filters.py
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Optional, Tuple

PARTITION_TRAIT = "Partition"


@dataclass(frozen=True)
class TraitFilter:
    """
    Selects tests by partition label.

    include: the test must carry this label.
    exclude: the test must carry none of these labels (logical AND of negations).
    At most one of the two is set; an empty exclude matches every test.
    """
    include: Optional[str] = None
    exclude: Tuple[str, ...] = ()
    trait: str = PARTITION_TRAIT

    def __post_init__(self) -> None:
        if self.include is not None and self.exclude:
            raise ValueError("TraitFilter takes either include or exclude, not both")
        object.__setattr__(self, "exclude", tuple(sorted(set(self.exclude))))

    def matches(self, labels: AbstractSet[str]) -> bool:
        if self.include is not None:
            return self.include in labels
        return not any(label in labels for label in self.exclude)

    def to_args(self) -> str:
        if self.include is not None:
            return f'--filter-trait "{self.trait}={self.include}"'
        return " ".join(f'--filter-not-trait "{self.trait}={label}"' for label in self.exclude)


@dataclass(frozen=True)
class ClassFilter:
    """Selects every test in exactly one class."""
    full_class_name: str

    def matches(self, test_name: str) -> bool:
        return test_name.startswith(self.full_class_name + ".")

    def to_args(self) -> str:
        return f'--filter-class "{self.full_class_name}"'


def include_partition(label: str) -> TraitFilter:
    return TraitFilter(include=label)


def exclude_partitions(labels) -> TraitFilter:
    return TraitFilter(exclude=tuple(labels))


def join_args(*parts: str) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())
