"""Line churn analysis: classify, accumulate, aggregate."""

from .aggregate import build_series
from .analysis import AnalysisState, ChurnAnalysis, run_commits
from .classifier import classify_change, count_edit_script
from .inputs import CommitInputs
from .lines import count_lines, is_binary
from .models import (
    AnalysisResult,
    Blob,
    ChangeAction,
    ChangeEntry,
    Edit,
    EditOp,
    FileDiff,
    RawDelta,
    Series,
    TreeChange,
)
from .policies import AlwaysConsumeGate, CommitGate, MergePolicy, NoopMergePolicy, OneShotMergeGate

__all__ = [
    "AnalysisResult",
    "AnalysisState",
    "AlwaysConsumeGate",
    "Blob",
    "ChangeAction",
    "ChangeEntry",
    "ChurnAnalysis",
    "CommitGate",
    "CommitInputs",
    "Edit",
    "EditOp",
    "FileDiff",
    "MergePolicy",
    "NoopMergePolicy",
    "OneShotMergeGate",
    "RawDelta",
    "Series",
    "TreeChange",
    "build_series",
    "classify_change",
    "count_edit_script",
    "count_lines",
    "is_binary",
    "run_commits",
]
