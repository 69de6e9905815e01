"""Line counting for blob content."""

from __future__ import annotations

from typing import Optional

from ..exceptions import BinaryContentError, MissingBlobError
from .models import Blob


def is_binary(data: bytes) -> bool:
    """Content is binary if it has a NUL byte or is not valid UTF-8."""
    if b"\x00" in data:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def count_lines(blob: Optional[Blob], blob_hash: str = "") -> int:
    """Count the lines in a blob.

    A trailing line without a newline still counts; empty content has no
    lines.

    Raises:
        MissingBlobError: blob is None (not present in the content cache)
        BinaryContentError: content is not text
    """
    if blob is None:
        raise MissingBlobError(blob_hash)
    data = blob.data
    if is_binary(data):
        raise BinaryContentError(blob.hash)
    if not data:
        return 0
    lines = data.count(b"\n")
    if not data.endswith(b"\n"):
        lines += 1
    return lines
