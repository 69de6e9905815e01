"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import ChurnConfig, load_config
from ..registry import AnalysisRegistry, register_default_analyses

console = Console(stderr=True)


def build_registry() -> AnalysisRegistry:
    """Registry with every shipped analysis, built once per process."""
    return register_default_analyses(AnalysisRegistry())


def resolve_config(
    config: Optional[Path] = None,
    track_people: Optional[bool] = None,
    output_format: Optional[str] = None,
    max_commits: Optional[int] = None,
    first_parent: Optional[bool] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> ChurnConfig:
    """Build config from CLI options; unset options fall back to files and env."""
    return load_config(
        config_file=config,
        track_people=track_people,
        output_format=output_format,
        max_commits=max_commits,
        first_parent=first_parent,
        verbose=verbose,
        quiet=quiet,
    )
