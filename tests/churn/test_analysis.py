"""Tests for the churn analysis lifecycle, accumulation and finalization."""

import io

import pytest

from churn_insight.churn.analysis import (
    CONFIG_CHURN_TRACK_PEOPLE,
    FACT_REVERSED_PEOPLE_DICT,
    AnalysisState,
    ChurnAnalysis,
    run_commits,
)
from churn_insight.churn.models import ChangeEntry, RawDelta, Series, TreeChange
from churn_insight.churn.policies import AlwaysConsumeGate
from churn_insight.exceptions import (
    AnalysisStateError,
    ClassificationError,
    InvalidInputError,
    MissingBlobError,
    MissingDependencyError,
    MissingDiffDataError,
)
from churn_insight.formatters import decode_binary


def make_analysis(track_people=False, people=("A", "B"), **kwargs) -> ChurnAnalysis:
    analysis = ChurnAnalysis(**kwargs)
    facts = {CONFIG_CHURN_TRACK_PEOPLE: track_people}
    if track_people:
        facts[FACT_REVERSED_PEOPLE_DICT] = list(people)
    analysis.configure(facts)
    analysis.initialize()
    return analysis


class TestMetadata:
    def test_identity(self):
        analysis = ChurnAnalysis()
        assert analysis.name == "ChurnAnalysis"
        assert analysis.flag == "churn"
        assert analysis.provides == ()
        assert analysis.requires == ("file_diff", "changes", "blob_cache", "day", "author")

    def test_configuration_options(self):
        (option,) = ChurnAnalysis().list_configuration_options()
        assert option.name == "Churn.TrackPeople"
        assert option.flag == "churn-people"
        assert option.default is False


class TestConfigure:
    def test_tracking_requires_identity_table(self):
        analysis = ChurnAnalysis()
        with pytest.raises(MissingDependencyError):
            analysis.configure({CONFIG_CHURN_TRACK_PEOPLE: True})

    def test_non_bool_option_is_ignored(self):
        analysis = ChurnAnalysis()
        analysis.configure({CONFIG_CHURN_TRACK_PEOPLE: "yes"})
        assert analysis.track_people is False

    def test_tracking_disabled_needs_no_identity_table(self):
        analysis = ChurnAnalysis()
        analysis.configure({})
        assert analysis.track_people is False


class TestRoundTripScenario:
    def test_two_authors_three_commits(self, commit, lines):
        analysis = make_analysis(track_people=True, people=("A", "B"))
        result = run_commits(
            analysis,
            [
                commit(day=0, author=0, commit_hash="c1").insert("f.txt", lines(3)).build(),
                commit(day=0, author=0, commit_hash="c2").delete("g.txt", lines(1)).build(),
                commit(day=2, author=1, commit_hash="c3").modify("f.txt", [("+", "xy")]).build(),
            ],
        )

        assert result.global_series == Series((0, 2), (3, 2), (1, 0))
        assert dict(result.people) == {
            "A": Series((0,), (3,), (1,)),
            "B": Series((2,), (2,), (0,)),
        }


class TestAccumulation:
    def test_one_delta_per_change(self, commit, lines):
        analysis = make_analysis()
        analysis.consume(
            commit(day=4).insert("a", lines(2)).insert("b", lines(3)).delete("c", lines(1)).build()
        )
        assert analysis.global_log == (RawDelta(4, 2, 0), RawDelta(4, 3, 0), RawDelta(4, 0, 1))

    def test_tracking_disabled_has_no_people(self, commit, lines):
        analysis = make_analysis(track_people=False)
        for author in range(5):
            analysis.consume(commit(day=author, author=author).insert("f", lines(1)).build())
        result = analysis.finalize()
        assert dict(result.people) == {}
        assert result.global_series.days == (0, 1, 2, 3, 4)

    def test_people_buckets_share_deltas_with_global(self, commit, lines):
        analysis = make_analysis(track_people=True)
        analysis.consume(commit(day=1, author=1).insert("f", lines(4)).build())
        assert analysis.people_log() == {1: (RawDelta(1, 4, 0),)}
        assert analysis.global_log == (RawDelta(1, 4, 0),)

    def test_commit_without_changes(self, commit):
        analysis = make_analysis()
        assert analysis.consume(commit(day=3).build()) is True
        assert analysis.finalize().global_series == Series()

    def test_consume_accepts_dependency_mapping(self, commit, lines):
        analysis = make_analysis()
        built = commit(day=2).insert("f", lines(2)).build()
        analysis.consume(
            {
                "file_diff": built.file_diffs,
                "changes": built.changes,
                "blob_cache": built.blob_cache,
                "day": 2,
                "author": 0,
            }
        )
        assert analysis.global_log == (RawDelta(2, 2, 0),)

    def test_consume_rejects_incomplete_mapping(self):
        analysis = make_analysis()
        with pytest.raises(MissingDependencyError):
            analysis.consume({"day": 1, "author": 0})

    def test_same_day_order_does_not_matter(self, commit, lines):
        commits = [
            commit(day=1).insert("a", lines(2)).build(),
            commit(day=1).delete("b", lines(5)).build(),
            commit(day=1).modify("c", [("+", "xyz"), ("-", "q")]).build(),
        ]
        forward = run_commits(make_analysis(), commits)
        backward = run_commits(make_analysis(), list(reversed(commits)))
        assert forward == backward


class TestMergeOneShot:
    def test_repeated_merge_view_is_skipped(self, commit, lines):
        analysis = make_analysis(track_people=True)
        merge = commit(day=3, author=0, commit_hash="m1", parents=("p1", "p2"))
        first = merge.insert("f", lines(4)).build()

        assert analysis.consume(first) is True
        assert analysis.consume(first) is False

        result = analysis.finalize()
        assert result.global_series == Series((3,), (4,), (0,))
        assert result.people["A"] == Series((3,), (4,), (0,))

    def test_non_merge_commits_are_never_gated(self, commit, lines):
        analysis = make_analysis()
        single = commit(day=0, commit_hash="c1", parents=("p1",)).insert("f", lines(1)).build()
        analysis.consume(single)
        analysis.consume(single)
        assert len(analysis.global_log) == 2

    def test_distinct_merges_are_both_consumed(self, commit, lines):
        analysis = make_analysis()
        for sha in ("m1", "m2"):
            analysis.consume(
                commit(day=0, commit_hash=sha, parents=("a", "b")).insert("f", lines(1)).build()
            )
        assert len(analysis.global_log) == 2

    def test_merge_without_hash_is_rejected(self, commit, lines):
        analysis = make_analysis()
        with pytest.raises(InvalidInputError):
            analysis.consume(commit(day=0, parents=("p1", "p2")).insert("a", lines(1)).build())
        with pytest.raises(InvalidInputError):
            analysis.consume(
                {
                    "file_diff": {},
                    "changes": [],
                    "blob_cache": {},
                    "day": 1,
                    "author": 0,
                    "parents": ["p3", "p4"],
                }
            )
        assert analysis.global_log == ()

    def test_gate_is_injectable(self, commit, lines):
        analysis = make_analysis(gate=AlwaysConsumeGate())
        merge = commit(day=0, commit_hash="m", parents=("a", "b")).insert("f", lines(1)).build()
        analysis.consume(merge)
        analysis.consume(merge)
        assert len(analysis.global_log) == 2

    def test_initialize_resets_gate(self, commit, lines):
        analysis = ChurnAnalysis()
        analysis.initialize()
        merge = commit(day=0, commit_hash="m", parents=("a", "b")).insert("f", lines(1)).build()
        analysis.consume(merge)
        fresh = ChurnAnalysis(gate=analysis.gate)
        fresh.initialize()
        assert fresh.consume(merge) is True


class TestFatalErrors:
    def test_missing_diff_propagates_and_keeps_earlier_entries(self, commit, lines):
        """Entries appended before the failing change of a commit stay in the log."""
        analysis = make_analysis(track_people=True)
        inputs = commit(day=1, author=0).insert("ok.txt", lines(2)).build()
        bad = TreeChange(old=ChangeEntry("bad.txt", "x"), new=ChangeEntry("bad.txt", "y"))
        inputs.changes.append(bad)
        inputs.changes.append(inputs.changes[0])

        with pytest.raises(MissingDiffDataError):
            analysis.consume(inputs)

        assert analysis.global_log == (RawDelta(1, 2, 0),)
        assert analysis.people_log() == {0: (RawDelta(1, 2, 0),)}

    def test_missing_blob_propagates(self, commit):
        analysis = make_analysis()
        inputs = commit(day=0).build()
        inputs.changes.append(TreeChange(old=None, new=ChangeEntry("f", "uncached")))
        with pytest.raises(MissingBlobError):
            analysis.consume(inputs)

    def test_consumption_continues_after_error(self, commit, lines):
        analysis = make_analysis()
        inputs = commit(day=0).build()
        inputs.changes.append(TreeChange(old=None, new=ChangeEntry("f", "uncached")))
        with pytest.raises(MissingBlobError):
            analysis.consume(inputs)
        assert analysis.consume(commit(day=1).insert("g", lines(1)).build())

    def test_unknown_author_fails_at_finalize(self, commit, lines):
        analysis = make_analysis(track_people=True, people=("A",))
        analysis.consume(commit(day=0, author=7).insert("f", lines(1)).build())
        with pytest.raises(ClassificationError):
            analysis.finalize()

    def test_authors_with_same_name_are_merged(self, commit, lines):
        analysis = make_analysis(track_people=True, people=("Sam", "Sam"))
        analysis.consume(commit(day=0, author=0).insert("f", lines(1)).build())
        analysis.consume(commit(day=0, author=1).insert("g", lines(2)).build())
        result = analysis.finalize()
        assert dict(result.people) == {"Sam": Series((0,), (3,), (0,))}


class TestFork:
    def test_forks_copy_state(self, commit, lines):
        analysis = make_analysis(track_people=True)
        analysis.consume(commit(day=0, author=0).insert("f", lines(2)).build())

        left, right = analysis.fork(2)
        left.consume(commit(day=1, author=0).insert("l", lines(5)).build())
        right.consume(commit(day=2, author=1).delete("r", lines(3)).build())

        assert analysis.global_log == (RawDelta(0, 2, 0),)
        assert left.global_log == (RawDelta(0, 2, 0), RawDelta(1, 5, 0))
        assert right.global_log == (RawDelta(0, 2, 0), RawDelta(2, 0, 3))
        assert right.people_log()[0] == (RawDelta(0, 2, 0),)
        assert 0 in left.people_log() and 1 not in left.people_log()

    def test_forks_have_independent_gates(self, commit, lines):
        analysis = make_analysis()
        merge = commit(day=0, commit_hash="m", parents=("a", "b")).insert("f", lines(1)).build()
        left, right = analysis.fork(2)
        assert left.consume(merge) is True
        assert right.consume(merge) is True
        assert left.consume(merge) is False

    def test_fork_inherits_gate_memory(self, commit, lines):
        analysis = make_analysis()
        merge = commit(day=0, commit_hash="m", parents=("a", "b")).insert("f", lines(1)).build()
        analysis.consume(merge)
        (child,) = analysis.fork(1)
        assert child.consume(merge) is False

    def test_forks_finalize_independently(self, commit, lines):
        analysis = make_analysis()
        left, right = analysis.fork(2)
        left.consume(commit(day=0).insert("f", lines(1)).build())
        assert left.finalize().global_series == Series((0,), (1,), (0,))
        assert right.finalize().global_series == Series()

    def test_fork_count_must_be_positive(self):
        with pytest.raises(ValueError):
            make_analysis().fork(0)

    def test_merge_is_a_noop(self, commit, lines):
        analysis = make_analysis()
        analysis.consume(commit(day=0).insert("f", lines(1)).build())
        branches = analysis.fork(2)
        analysis.merge(branches)
        assert analysis.global_log == (RawDelta(0, 1, 0),)


class TestLifecycle:
    def test_states(self, commit, lines):
        analysis = ChurnAnalysis()
        assert analysis.state is AnalysisState.CREATED
        analysis.configure({})
        analysis.initialize()
        assert analysis.state is AnalysisState.INITIALIZED
        analysis.consume(commit(day=0).insert("f", lines(1)).build())
        assert analysis.state is AnalysisState.CONSUMING
        analysis.finalize()
        assert analysis.state is AnalysisState.FINALIZED

    def test_consume_before_initialize(self, commit):
        with pytest.raises(AnalysisStateError):
            ChurnAnalysis().consume(commit().build())

    def test_finalize_only_once(self):
        analysis = make_analysis()
        analysis.finalize()
        with pytest.raises(AnalysisStateError):
            analysis.finalize()

    def test_no_consumption_after_finalize(self, commit):
        analysis = make_analysis()
        analysis.finalize()
        with pytest.raises(AnalysisStateError):
            analysis.consume(commit().build())

    def test_configure_after_consuming_is_rejected(self, commit):
        analysis = make_analysis()
        analysis.consume(commit().build())
        with pytest.raises(AnalysisStateError):
            analysis.configure({})

    def test_serialize_requires_finalize(self):
        analysis = make_analysis()
        with pytest.raises(AnalysisStateError):
            analysis.serialize(None, binary=False)  # type: ignore[arg-type]

    def test_finalize_with_no_commits(self):
        result = make_analysis(track_people=True).finalize()
        assert result.global_series == Series()
        assert dict(result.people) == {}


class TestSerialize:
    def _result(self, commit, lines):
        analysis = make_analysis(track_people=True)
        analysis.consume(commit(day=0, author=0).insert("f", lines(3)).build())
        analysis.consume(commit(day=2, author=1).modify("f", [("+", "xy")]).build())
        return analysis, analysis.finalize()

    def test_text_is_repeatable(self, commit, lines):
        analysis, result = self._result(commit, lines)
        first = analysis.serialize(result, binary=False)
        assert first == analysis.serialize(result, binary=False)
        assert first.startswith("  global:\n    days: [0, 2]\n")

    def test_binary_is_repeatable_and_decodes(self, commit, lines):
        analysis, result = self._result(commit, lines)
        first = analysis.serialize(result, binary=True)
        assert first == analysis.serialize(result, binary=True)
        assert decode_binary(first) == result

    def test_writes_to_writer(self, commit, lines):
        analysis, result = self._result(commit, lines)
        buffer = io.BytesIO()
        analysis.serialize(result, True, buffer)
        assert buffer.getvalue() == analysis.serialize(result, True)

    def test_write_errors_propagate(self, commit, lines):
        analysis, result = self._result(commit, lines)
        stream = io.StringIO()
        stream.close()
        with pytest.raises(ValueError):
            analysis.serialize(result, False, stream)


class TestDeterminism:
    def test_identical_runs_serialize_identically(self, commit, lines):
        def run():
            analysis = make_analysis(track_people=True, people=("Zed", "Amy"))
            result = run_commits(
                analysis,
                [
                    commit(day=5, author=0).insert("a", lines(3)).build(),
                    commit(day=1, author=1).delete("b", lines(2)).build(),
                    commit(day=5, author=1).modify("a", [("-", "abc")]).build(),
                ],
            )
            return analysis.serialize(result, True), analysis.serialize(result, False)

        assert run() == run()
