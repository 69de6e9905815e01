"""Base formatter interface for churn result rendering."""

from abc import ABC, abstractmethod
from typing import BinaryIO, TextIO, Union

from ..churn.models import AnalysisResult


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    name: str
    binary: bool = False

    @abstractmethod
    def format(self, result: AnalysisResult) -> Union[str, bytes]:
        """Return the rendered representation of ``result``."""

    def write(self, result: AnalysisResult, stream: Union[TextIO, BinaryIO]) -> None:
        """Render ``result`` into ``stream``; write errors propagate."""
        stream.write(self.format(result))  # type: ignore[arg-type]
