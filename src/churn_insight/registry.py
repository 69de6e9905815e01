"""Explicit registry of leaf analyses.

Nothing registers itself on import. The process entry point builds a
registry and calls ``register_default_analyses`` once::

    registry = AnalysisRegistry()
    register_default_analyses(registry)
    churn = registry.create("churn")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Protocol, Sequence


class OptionType(str, Enum):
    BOOL = "bool"


@dataclass(frozen=True)
class ConfigurationOption:
    """A tunable parameter of an analysis, exposed through the CLI."""

    name: str  # key in the facts mapping, e.g. "Churn.TrackPeople"
    description: str
    flag: str  # command line switch without leading dashes
    type: OptionType
    default: Any


class LeafAnalysis(Protocol):
    """An analysis that consumes commits and produces a terminal result."""

    name: str
    flag: str
    description: str
    provides: tuple[str, ...]
    requires: tuple[str, ...]

    def list_configuration_options(self) -> Sequence[ConfigurationOption]: ...

    def configure(self, facts: Mapping[str, Any]) -> None: ...

    def initialize(self) -> None: ...

    def finalize(self) -> Any: ...


class AnalysisRegistry:
    """Maps analysis flags to analysis types."""

    def __init__(self) -> None:
        self._items: dict[str, type] = {}

    def register(self, item: LeafAnalysis) -> None:
        """Register an analysis by its flag. Duplicate flags are rejected."""
        flag = item.flag
        existing = self._items.get(flag)
        if existing is not None and existing is not type(item):
            raise ValueError(f"Analysis flag already registered: {flag!r}")
        self._items[flag] = type(item)

    def create(self, flag: str) -> LeafAnalysis:
        """Return a fresh, unconfigured instance of the analysis behind ``flag``."""
        cls = self._items.get(flag)
        if cls is None:
            known = ", ".join(sorted(self._items)) or "none"
            raise KeyError(f"Unknown analysis: {flag!r}. Registered: {known}")
        return cls()

    def flags(self) -> list[str]:
        return sorted(self._items)

    def __contains__(self, flag: object) -> bool:
        return flag in self._items

    def __iter__(self) -> Iterator[LeafAnalysis]:
        for flag in self.flags():
            yield self.create(flag)

    def __len__(self) -> int:
        return len(self._items)


def register_default_analyses(registry: AnalysisRegistry) -> AnalysisRegistry:
    """Populate ``registry`` with the analyses shipped in this package."""
    from .churn.analysis import ChurnAnalysis

    registry.register(ChurnAnalysis())
    return registry
