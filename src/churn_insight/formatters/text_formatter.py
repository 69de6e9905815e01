"""Indented, YAML-compatible text rendering of churn results."""

import json
import re
from typing import List

from ..churn.models import AnalysisResult, Series
from .base import BaseFormatter

# Plain scalars that YAML would read as something other than a string
_YAML_RESERVED = frozenset(
    {"true", "false", "yes", "no", "on", "off", "y", "n", "null", "~"}
)
_PLAIN_SAFE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.@ /+-]*$")


def safe_yaml_string(value: str) -> str:
    """Escape ``value`` so it can be embedded as a YAML scalar.

    Names are never altered: anything that would not read back as the same
    string, including surrounding whitespace, is double-quoted.
    """
    if not value:
        return '""'
    if (
        value == value.strip()
        and _PLAIN_SAFE_RE.match(value)
        and value.lower() not in _YAML_RESERVED
    ):
        return value
    return json.dumps(value, ensure_ascii=False)


def format_int_list(values) -> str:
    return "[" + ", ".join(str(int(v)) for v in values) + "]"


def format_series(series: Series, indent: int) -> List[str]:
    pad = " " * indent
    return [
        f"{pad}days: {format_int_list(series.days)}",
        f"{pad}additions: {format_int_list(series.additions)}",
        f"{pad}removals: {format_int_list(series.removals)}",
    ]


class TextFormatter(BaseFormatter):
    """Render the global series, then one block per person sorted by name."""

    name = "text"

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format(self, result: AnalysisResult) -> str:
        key_pad = " " * self.indent
        value_indent = self.indent * 2
        lines = [f"{key_pad}global:"]
        lines.extend(format_series(result.global_series, value_indent))
        for name in sorted(result.people):
            lines.append(f"{key_pad}{safe_yaml_string(name)}:")
            lines.extend(format_series(result.people[name], value_indent))
        return "\n".join(lines) + "\n"
