"""Typed per-commit inputs for the churn analysis."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidInputError, MissingDependencyError
from .models import Blob, FileDiff, TreeChange

# Dependency names, as listed by ChurnAnalysis.requires
DEPENDENCY_FILE_DIFF = "file_diff"
DEPENDENCY_TREE_CHANGES = "changes"
DEPENDENCY_BLOB_CACHE = "blob_cache"
DEPENDENCY_DAY = "day"
DEPENDENCY_AUTHOR = "author"
DEPENDENCY_COMMIT_HASH = "commit_hash"
DEPENDENCY_PARENTS = "parents"


@dataclass(frozen=True)
class CommitInputs:
    """Everything the accumulator needs for one commit presentation.

    ``parents`` identifies merge commits (two or more parents) for the
    one-shot gate. ``author`` is an index into the identity table that is
    resolved to a name only at finalize time.
    """

    file_diffs: Mapping[str, FileDiff]
    changes: Sequence[TreeChange]
    blob_cache: Mapping[str, Blob]
    day: int
    author: int
    commit_hash: str = ""
    parents: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if isinstance(self.day, bool) or not isinstance(self.day, int) or self.day < 0:
            raise InvalidInputError(DEPENDENCY_DAY, f"expected non-negative int, got {self.day!r}")
        if isinstance(self.author, bool) or not isinstance(self.author, int):
            raise InvalidInputError(DEPENDENCY_AUTHOR, f"expected int, got {self.author!r}")
        object.__setattr__(self, "parents", tuple(self.parents))
        if self.is_merge and not self.commit_hash:
            raise InvalidInputError(
                DEPENDENCY_COMMIT_HASH, "a merge commit (two or more parents) needs its hash"
            )

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @classmethod
    def from_mapping(cls, deps: Mapping[str, Any]) -> "CommitInputs":
        """Build inputs from a loose dependency mapping, failing fast.

        Raises:
            MissingDependencyError: a required key is absent
            InvalidInputError: a value has the wrong type
        """
        file_diffs = _require(deps, DEPENDENCY_FILE_DIFF, Mapping)
        changes = _require(deps, DEPENDENCY_TREE_CHANGES, Sequence)
        blob_cache = _require(deps, DEPENDENCY_BLOB_CACHE, Mapping)
        day = _require(deps, DEPENDENCY_DAY, int)
        author = _require(deps, DEPENDENCY_AUTHOR, int)

        for path, diff in file_diffs.items():
            if not isinstance(diff, FileDiff):
                raise InvalidInputError(DEPENDENCY_FILE_DIFF, f"{path}: expected FileDiff")
        for change in changes:
            if not isinstance(change, TreeChange):
                raise InvalidInputError(
                    DEPENDENCY_TREE_CHANGES, f"expected TreeChange, got {type(change).__name__}"
                )
        for key, blob in blob_cache.items():
            if not isinstance(blob, Blob):
                raise InvalidInputError(DEPENDENCY_BLOB_CACHE, f"{key}: expected Blob")

        commit_hash = deps.get(DEPENDENCY_COMMIT_HASH, "")
        if not isinstance(commit_hash, str):
            raise InvalidInputError(DEPENDENCY_COMMIT_HASH, "expected str")
        parents = deps.get(DEPENDENCY_PARENTS, ())
        if isinstance(parents, str) or not isinstance(parents, Sequence):
            raise InvalidInputError(DEPENDENCY_PARENTS, "expected a sequence of hashes")

        return cls(
            file_diffs=file_diffs,
            changes=changes,
            blob_cache=blob_cache,
            day=day,
            author=author,
            commit_hash=commit_hash,
            parents=tuple(parents),
        )


def _require(deps: Mapping[str, Any], name: str, kind: type) -> Any:
    if name not in deps:
        raise MissingDependencyError(name)
    value = deps[name]
    if isinstance(value, bool) and kind is int:
        raise InvalidInputError(name, "expected int, got bool")
    if isinstance(value, str) and kind is Sequence:
        raise InvalidInputError(name, "expected a sequence, got str")
    if not isinstance(value, kind):
        raise InvalidInputError(name, f"expected {kind.__name__}, got {type(value).__name__}")
    return value
