"""Output formatters for Churn Insight."""

from .base import BaseFormatter
from .binary_formatter import BinaryFormatter, decode_binary, encode_binary
from .text_formatter import TextFormatter, safe_yaml_string


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "text", "binary"

    Returns:
        Formatter instance

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "text": TextFormatter,
        "binary": BinaryFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(sorted(formatters))}")
    return cls()


__all__ = [
    "BaseFormatter",
    "TextFormatter",
    "BinaryFormatter",
    "get_formatter",
    "encode_binary",
    "decode_binary",
    "safe_yaml_string",
]
