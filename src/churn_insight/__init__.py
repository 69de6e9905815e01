"""
Churn Insight - daily line churn from git history

Classifies every file change of every commit into inserted and removed
lines, then aggregates them per day, globally and optionally per author.
"""

__version__ = "0.1.0"

from .churn import AnalysisResult, ChurnAnalysis, CommitInputs, RawDelta, Series
from .registry import AnalysisRegistry, register_default_analyses

__all__ = [
    "ChurnAnalysis",
    "CommitInputs",
    "AnalysisResult",
    "RawDelta",
    "Series",
    "AnalysisRegistry",
    "register_default_analyses",
]
