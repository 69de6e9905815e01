"""Configuration loading and management for Churn Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in ChurnConfig)
    2. Global config (~/.churn-insight.toml)
    3. Project config (./churn-insight.toml)
    4. Explicit config file
    5. Environment variables (CHURN_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(track_people=True)
    >>> config.track_people
    True
    >>> config.to_facts()["Churn.TrackPeople"]
    True
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
OutputFormat = Literal["text", "binary"]

_OUTPUT_FORMATS = ("text", "binary")
_VERBOSITIES = ("quiet", "normal", "verbose")


@dataclass(frozen=True)
class ChurnConfig:
    """Configuration for a churn run.

    Attributes:
        track_people: Record a separate series per author
        output_format: "text" (indented, YAML-compatible) or "binary"
        max_commits: Stop after this many commits (0 = unlimited)
        first_parent: Follow only the first parent of merge commits
        verbosity: Logging verbosity level
    """

    track_people: bool = False
    output_format: OutputFormat = "text"
    max_commits: int = 0
    first_parent: bool = False
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.track_people, bool):
            raise InvalidConfigError("track_people", self.track_people, "must be a boolean")
        if self.output_format not in _OUTPUT_FORMATS:
            raise InvalidConfigError(
                "output_format", self.output_format, f"must be one of {', '.join(_OUTPUT_FORMATS)}"
            )
        if self.max_commits < 0:
            raise InvalidConfigError("max_commits", self.max_commits, "must be non-negative")
        if self.verbosity not in _VERBOSITIES:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"must be one of {', '.join(_VERBOSITIES)}"
            )

    def to_facts(self) -> dict[str, Any]:
        """Facts mapping understood by ``ChurnAnalysis.configure``."""
        from .churn.analysis import CONFIG_CHURN_TRACK_PEOPLE

        return {CONFIG_CHURN_TRACK_PEOPLE: self.track_people}


def load_config(config_file: Optional[Path] = None, **overrides) -> ChurnConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask files.

    Returns:
        Validated ChurnConfig instance

    Raises:
        InvalidConfigError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".churn-insight.toml"
    if global_config.exists():
        merged.update(_load_toml_section(global_config))

    project_config = Path.cwd() / "churn-insight.toml"
    if project_config.exists():
        merged.update(_load_toml_section(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise InvalidConfigError("config_file", config_file, "file not found")
        merged.update(_load_toml_section(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    unknown = set(merged) - set(ChurnConfig.__dataclass_fields__)
    if unknown:
        key = sorted(unknown)[0]
        raise InvalidConfigError(key, merged[key], "unknown configuration key")
    return ChurnConfig(**merged)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CHURN_* environment variables.

    Supported environment variables:
        CHURN_TRACK_PEOPLE: bool (true/false/1/0)
        CHURN_OUTPUT_FORMAT: text/binary
        CHURN_MAX_COMMITS: int
        CHURN_FIRST_PARENT: bool
        CHURN_VERBOSITY: quiet/normal/verbose
    """
    type_hints = get_type_hints(ChurnConfig)
    result: dict[str, Any] = {}

    for field_name in ChurnConfig.__dataclass_fields__:
        env_key = f"CHURN_{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            result[field_name] = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e)) from e

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type."""
    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    # Literal aliases (format, verbosity) are validated by ChurnConfig
    return value


def _load_toml_section(path: Path) -> dict:
    """Load the ``[churn]`` table of a TOML file, or the whole file if absent."""
    try:
        data = _load_toml_file(path)
    except InvalidConfigError:
        raise
    except Exception as e:
        raise InvalidConfigError("config_file", path, f"cannot parse TOML: {e}") from e
    section = data.get("churn", data)
    if not isinstance(section, dict):
        raise InvalidConfigError("churn", section, "expected a table")
    return dict(section)


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise InvalidConfigError(
                "config_file",
                path,
                "TOML support requires Python 3.11+ or the 'tomli' package",
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
