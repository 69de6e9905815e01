"""Composable per-commit behaviours: merge policy and commit gating."""

from __future__ import annotations

import copy
from typing import Protocol, Sequence

from .inputs import CommitInputs


class MergePolicy(Protocol):
    """Combines the states of branches that meet at a merge commit."""

    def merge(self, branches: Sequence[object]) -> None: ...


class CommitGate(Protocol):
    """Decides whether a commit presentation should be consumed."""

    def should_consume(self, inputs: CommitInputs) -> bool: ...

    def reset(self) -> None: ...

    def clone(self) -> "CommitGate": ...


class NoopMergePolicy:
    """Churn is additive per branch, so joining branches needs no extra work."""

    def merge(self, branches: Sequence[object]) -> None:
        return None


class AlwaysConsumeGate:
    """Consumes every presentation, including repeated merge views."""

    def should_consume(self, inputs: CommitInputs) -> bool:
        return True

    def reset(self) -> None:
        return None

    def clone(self) -> "AlwaysConsumeGate":
        return AlwaysConsumeGate()


class OneShotMergeGate:
    """Let each merge commit through once, however many parent views arrive.

    Commits with fewer than two parents always pass.
    """

    def __init__(self) -> None:
        self._seen_merges: set[str] = set()

    def should_consume(self, inputs: CommitInputs) -> bool:
        if not inputs.is_merge:
            return True
        if inputs.commit_hash in self._seen_merges:
            return False
        self._seen_merges.add(inputs.commit_hash)
        return True

    def reset(self) -> None:
        self._seen_merges = set()

    def clone(self) -> "OneShotMergeGate":
        return copy.deepcopy(self)

    @property
    def seen_merges(self) -> frozenset[str]:
        return frozenset(self._seen_merges)
