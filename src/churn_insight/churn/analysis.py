"""Daily line churn, globally and per author.

``ChurnAnalysis`` is a leaf analysis: it consumes one commit at a time,
appends a ``RawDelta`` per changed file and, at the end, folds the logs into
day-sorted ``Series``.

Lifecycle::

    CREATED -> INITIALIZED -> CONSUMING (0..n) -> FINALIZED -> serialize()*

A fatal classification error aborts ``consume`` for the current commit.
Deltas already appended for earlier files of that commit are kept; there is
no rollback.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import IO, Any, Iterable, Mapping, Optional, Sequence, Union

from ..exceptions import AnalysisStateError, ClassificationError, MissingDependencyError
from ..formatters import get_formatter
from ..logging_config import get_logger
from ..registry import ConfigurationOption, OptionType
from .aggregate import build_series
from .classifier import classify_change
from .inputs import (
    DEPENDENCY_AUTHOR,
    DEPENDENCY_BLOB_CACHE,
    DEPENDENCY_DAY,
    DEPENDENCY_FILE_DIFF,
    DEPENDENCY_TREE_CHANGES,
    CommitInputs,
)
from .models import AnalysisResult, RawDelta, Series
from .policies import CommitGate, MergePolicy, NoopMergePolicy, OneShotMergeGate

logger = get_logger(__name__)

CONFIG_CHURN_TRACK_PEOPLE = "Churn.TrackPeople"
FACT_REVERSED_PEOPLE_DICT = "IdentityDetector.ReversedPeopleDict"


class AnalysisState(str, Enum):
    CREATED = "created"
    INITIALIZED = "initialized"
    CONSUMING = "consuming"
    FINALIZED = "finalized"


class ChurnAnalysis:
    """Collects the daily numbers of inserted and removed lines."""

    name = "ChurnAnalysis"
    flag = "churn"
    description = "Collects the daily numbers of inserted and removed lines."
    provides: tuple[str, ...] = ()
    requires: tuple[str, ...] = (
        DEPENDENCY_FILE_DIFF,
        DEPENDENCY_TREE_CHANGES,
        DEPENDENCY_BLOB_CACHE,
        DEPENDENCY_DAY,
        DEPENDENCY_AUTHOR,
    )

    def __init__(
        self,
        track_people: bool = False,
        gate: Optional[CommitGate] = None,
        merge_policy: Optional[MergePolicy] = None,
    ):
        self.track_people = track_people
        self.gate: CommitGate = gate if gate is not None else OneShotMergeGate()
        self.merge_policy: MergePolicy = (
            merge_policy if merge_policy is not None else NoopMergePolicy()
        )
        self.state = AnalysisState.CREATED
        self._reversed_people: tuple[str, ...] = ()
        self._global: list[RawDelta] = []
        self._people: dict[int, list[RawDelta]] = defaultdict(list)

    # ── Configuration ─────────────────────────────────────────────

    def list_configuration_options(self) -> list[ConfigurationOption]:
        return [
            ConfigurationOption(
                name=CONFIG_CHURN_TRACK_PEOPLE,
                description="Record detailed statistics per each developer.",
                flag="churn-people",
                type=OptionType.BOOL,
                default=False,
            )
        ]

    def configure(self, facts: Mapping[str, Any]) -> None:
        """Apply options and facts. Tracking people requires the identity table."""
        self._require_state("configure", AnalysisState.CREATED, AnalysisState.INITIALIZED)
        value = facts.get(CONFIG_CHURN_TRACK_PEOPLE)
        if isinstance(value, bool):
            self.track_people = value
        if self.track_people:
            if FACT_REVERSED_PEOPLE_DICT not in facts:
                raise MissingDependencyError(FACT_REVERSED_PEOPLE_DICT)
            self._reversed_people = tuple(facts[FACT_REVERSED_PEOPLE_DICT])

    def initialize(self) -> None:
        """Reset accumulated state and prepare for ``consume``."""
        self._require_state("initialize", AnalysisState.CREATED, AnalysisState.INITIALIZED)
        self._global = []
        self._people = defaultdict(list)
        self.gate.reset()
        self.state = AnalysisState.INITIALIZED

    # ── Consumption ───────────────────────────────────────────────

    def consume(self, inputs: Union[CommitInputs, Mapping[str, Any]]) -> bool:
        """Accumulate one commit. Returns False when the gate skips it."""
        self._require_state("consume", AnalysisState.INITIALIZED, AnalysisState.CONSUMING)
        if not isinstance(inputs, CommitInputs):
            inputs = CommitInputs.from_mapping(inputs)
        self.state = AnalysisState.CONSUMING

        if not self.gate.should_consume(inputs):
            logger.debug("Skipping repeated merge commit %s", inputs.commit_hash)
            return False

        for change in inputs.changes:
            added, removed = classify_change(change, inputs.file_diffs, inputs.blob_cache)
            delta = RawDelta(day=inputs.day, added=added, removed=removed)
            self._global.append(delta)
            if self.track_people:
                self._people[inputs.author].append(delta)
        return True

    def fork(self, n: int) -> list["ChurnAnalysis"]:
        """Clone the current state ``n`` times for parallel branches."""
        self._require_state("fork", AnalysisState.INITIALIZED, AnalysisState.CONSUMING)
        if n < 1:
            raise ValueError(f"fork count must be at least 1, got {n}")
        return [self._clone() for _ in range(n)]

    def merge(self, branches: Sequence["ChurnAnalysis"]) -> None:
        self._require_state("merge", AnalysisState.INITIALIZED, AnalysisState.CONSUMING)
        self.merge_policy.merge(branches)

    def _clone(self) -> "ChurnAnalysis":
        clone = ChurnAnalysis(
            track_people=self.track_people,
            gate=self.gate.clone(),
            merge_policy=self.merge_policy,
        )
        clone.state = self.state
        clone._reversed_people = self._reversed_people
        # RawDelta is frozen, so copying the lists is enough
        clone._global = list(self._global)
        clone._people = defaultdict(list, {k: list(v) for k, v in self._people.items()})
        return clone

    # ── Finalization ──────────────────────────────────────────────

    def finalize(self) -> AnalysisResult:
        """Fold the logs into series. Author ids are resolved to names here."""
        self._require_state("finalize", AnalysisState.INITIALIZED, AnalysisState.CONSUMING)
        people: dict[str, Series] = {}
        if self.track_people:
            by_name: dict[str, list[RawDelta]] = defaultdict(list)
            for author, deltas in self._people.items():
                by_name[self._resolve_author(author)].extend(deltas)
            people = {name: build_series(deltas) for name, deltas in by_name.items()}

        result = AnalysisResult(global_series=build_series(self._global), people=people)
        logger.info(
            "Churn finalized: %d entries over %d days, +%d/-%d lines, %d people",
            len(self._global),
            len(result.global_series),
            result.global_series.total_added,
            result.global_series.total_removed,
            len(people),
        )
        self._global = []
        self._people = defaultdict(list)
        self.state = AnalysisState.FINALIZED
        return result

    def _resolve_author(self, author: int) -> str:
        if not 0 <= author < len(self._reversed_people):
            raise ClassificationError(
                f"author id {author} is missing from the identity table "
                f"({len(self._reversed_people)} entries)"
            )
        return self._reversed_people[author]

    # ── Serialization ─────────────────────────────────────────────

    def serialize(
        self, result: AnalysisResult, binary: bool, writer: Optional[IO[Any]] = None
    ) -> Union[str, bytes]:
        """Render ``result`` as text or binary, optionally writing it to ``writer``."""
        self._require_state("serialize", AnalysisState.FINALIZED)
        formatter = get_formatter("binary" if binary else "text")
        rendered = formatter.format(result)
        if writer is not None:
            writer.write(rendered)
        return rendered

    # ── Introspection ─────────────────────────────────────────────

    @property
    def global_log(self) -> tuple[RawDelta, ...]:
        return tuple(self._global)

    def people_log(self) -> dict[int, tuple[RawDelta, ...]]:
        return {author: tuple(deltas) for author, deltas in self._people.items()}

    def _require_state(self, operation: str, *allowed: AnalysisState) -> None:
        if self.state not in allowed:
            raise AnalysisStateError(operation, self.state.value)


def run_commits(
    analysis: ChurnAnalysis, commits: Iterable[Union[CommitInputs, Mapping[str, Any]]]
) -> AnalysisResult:
    """Consume ``commits`` in order on an initialized analysis and finalize."""
    for inputs in commits:
        analysis.consume(inputs)
    return analysis.finalize()
