"""Analysis-related exceptions: classification, inputs, lifecycle."""

from typing import Dict, Optional

from .base import ChurnInsightError


class AnalysisError(ChurnInsightError):
    """Base class for analysis-related errors."""
    pass


class BinaryContentError(AnalysisError):
    """Raised by line counting when blob content is binary.

    The classifier treats this as a zero count; it never reaches the driver.
    """

    def __init__(self, blob_hash: str):
        super().__init__("binary", details={"blob": blob_hash})
        self.blob_hash = blob_hash


class ClassificationError(AnalysisError):
    """Raised when a file change cannot be turned into a line delta."""

    def __init__(self, reason: str, path: Optional[str] = None):
        details: Dict[str, str] = {"reason": reason}
        if path is not None:
            details["path"] = path
        super().__init__(f"Failed to classify change: {reason}", details=details)
        self.reason = reason
        self.path = path


class MissingDiffDataError(ClassificationError):
    """Raised when the edit script for a modified path is absent or malformed."""

    def __init__(self, path: str, reason: str = "no edit script for modified file"):
        super().__init__(reason, path=path)


class MissingBlobError(ClassificationError):
    """Raised when a blob referenced by a change is not in the content cache."""

    def __init__(self, blob_hash: str, path: Optional[str] = None):
        super().__init__(f"blob {blob_hash} is not cached", path=path)
        self.blob_hash = blob_hash


class AnalysisStateError(AnalysisError):
    """Raised when an analysis operation is called in the wrong lifecycle state."""

    def __init__(self, operation: str, state: str):
        super().__init__(
            f"Cannot {operation} in state {state}",
            details={"operation": operation, "state": state},
        )
        self.operation = operation
        self.state = state


class InputError(AnalysisError):
    """Base class for malformed per-commit inputs."""
    pass


class MissingDependencyError(InputError):
    """Raised when a required dependency is absent from the inputs."""

    def __init__(self, name: str):
        super().__init__(f"Missing required dependency: {name}", details={"name": name})
        self.name = name


class InvalidInputError(InputError):
    """Raised when a dependency is present but has the wrong shape."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            f"Invalid dependency {name}",
            details={"name": name, "reason": reason},
        )
        self.name = name
        self.reason = reason
