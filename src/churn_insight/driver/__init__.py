"""Reference driver: feed git history into the churn analysis."""

from .git_source import CommitRecord, GitCommitSource, IdentityTable, line_diff
from .pipeline import ChurnRun, run_churn

__all__ = [
    "CommitRecord",
    "GitCommitSource",
    "IdentityTable",
    "ChurnRun",
    "line_diff",
    "run_churn",
]
