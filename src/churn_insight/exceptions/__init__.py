"""Exception hierarchy for Churn Insight."""

from .analysis import (
    AnalysisError,
    AnalysisStateError,
    BinaryContentError,
    ClassificationError,
    InputError,
    InvalidInputError,
    MissingBlobError,
    MissingDependencyError,
    MissingDiffDataError,
)
from .base import ChurnInsightError, GitError, SerializationError
from .config import ConfigurationError, InvalidConfigError

__all__ = [
    "ChurnInsightError",
    "AnalysisError",
    "AnalysisStateError",
    "BinaryContentError",
    "ClassificationError",
    "MissingDiffDataError",
    "MissingBlobError",
    "InputError",
    "MissingDependencyError",
    "InvalidInputError",
    "SerializationError",
    "GitError",
    "ConfigurationError",
    "InvalidConfigError",
]
