"""Base exception for Churn Insight."""

from typing import Dict, Optional


class ChurnInsightError(Exception):
    """Base exception for all Churn Insight errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class SerializationError(ChurnInsightError):
    """Raised when a result cannot be encoded or decoded."""

    def __init__(self, reason: str, fmt: str = "binary"):
        super().__init__(
            f"Cannot serialize churn result: {reason}",
            details={"format": fmt},
        )
        self.reason = reason
        self.fmt = fmt


class GitError(ChurnInsightError):
    """Raised when a git subprocess fails while reading history."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"git command failed: {command}",
            details={"reason": reason},
        )
        self.command = command
        self.reason = reason
