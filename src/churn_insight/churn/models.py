"""Data models for line churn analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from ..exceptions import ClassificationError


class ChangeAction(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    MODIFY = "modify"


class EditOp(str, Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class Edit:
    """One span of an edit script."""

    op: EditOp
    text: str


@dataclass(frozen=True)
class FileDiff:
    """Line-level edit script for one modified path."""

    old_lines: int
    new_lines: int
    edits: tuple[Edit, ...]


@dataclass(frozen=True)
class ChangeEntry:
    name: str  # path inside the tree
    blob_hash: str


@dataclass(frozen=True)
class TreeChange:
    """A single file-level event in a commit.

    A missing ``old`` side means the file was inserted, a missing ``new``
    side means it was deleted.
    """

    old: Optional[ChangeEntry]
    new: Optional[ChangeEntry]

    @property
    def action(self) -> ChangeAction:
        if self.old is None and self.new is None:
            raise ClassificationError("tree change has neither side")
        if self.old is None:
            return ChangeAction.INSERT
        if self.new is None:
            return ChangeAction.DELETE
        return ChangeAction.MODIFY

    @property
    def path(self) -> str:
        entry = self.new if self.new is not None else self.old
        return entry.name if entry is not None else ""


@dataclass(frozen=True)
class Blob:
    hash: str
    data: bytes


@dataclass(frozen=True)
class RawDelta:
    """One classified change event: lines added and removed on a given day."""

    day: int
    added: int
    removed: int

    def __post_init__(self) -> None:
        if self.day < 0 or self.added < 0 or self.removed < 0:
            raise ValueError(f"RawDelta fields must be non-negative: {self}")


@dataclass(frozen=True)
class Series:
    """Day-sorted, duplicate-summed churn.

    ``days`` is strictly increasing; ``additions[i]`` and ``removals[i]``
    belong to ``days[i]``.
    """

    days: tuple[int, ...] = ()
    additions: tuple[int, ...] = ()
    removals: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence, store tuples
        object.__setattr__(self, "days", tuple(self.days))
        object.__setattr__(self, "additions", tuple(self.additions))
        object.__setattr__(self, "removals", tuple(self.removals))
        if not len(self.days) == len(self.additions) == len(self.removals):
            raise ValueError("days, additions and removals must have equal length")
        if any(a >= b for a, b in zip(self.days, self.days[1:])):
            raise ValueError("days must be strictly increasing")

    def __len__(self) -> int:
        return len(self.days)

    @property
    def total_added(self) -> int:
        return sum(self.additions)

    @property
    def total_removed(self) -> int:
        return sum(self.removals)


@dataclass(frozen=True)
class AnalysisResult:
    """Terminal output of a churn run.

    ``global_series`` is serialized under the ``global`` key. ``people`` is
    empty unless per-author tracking was enabled.
    """

    global_series: Series
    people: Mapping[str, Series] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "people", MappingProxyType(dict(self.people)))
