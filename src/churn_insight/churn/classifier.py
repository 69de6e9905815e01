"""Classify file-level changes into (added, removed) line deltas."""

from __future__ import annotations

from typing import Mapping

from ..exceptions import BinaryContentError, MissingBlobError, MissingDiffDataError
from ..logging_config import get_logger
from .lines import count_lines
from .models import Blob, ChangeAction, ChangeEntry, EditOp, FileDiff, TreeChange

logger = get_logger(__name__)


def classify_change(
    change: TreeChange,
    file_diffs: Mapping[str, FileDiff],
    cache: Mapping[str, Blob],
) -> tuple[int, int]:
    """Return ``(added, removed)`` for one tree change.

    Inserts and deletes count the lines of the new and old blob respectively.
    Modifications sum the code points of insert and delete spans of the edit
    script; the upstream line diff encodes each line as a single code point,
    so the sums are line counts.

    Binary blobs count as zero. Every other failure propagates.
    """
    action = change.action
    if action is ChangeAction.INSERT:
        assert change.new is not None
        return _count_side(change.new, cache), 0
    if action is ChangeAction.DELETE:
        assert change.old is not None
        return 0, _count_side(change.old, cache)

    path = change.path
    diff = file_diffs.get(path)
    if diff is None:
        raise MissingDiffDataError(path)
    return count_edit_script(diff, path)


def count_edit_script(diff: FileDiff, path: str = "") -> tuple[int, int]:
    """Sum insert and delete span lengths, skipping equal spans."""
    added = 0
    removed = 0
    try:
        edits = iter(diff.edits)
    except TypeError:
        raise MissingDiffDataError(path, "edit script is not iterable") from None
    for edit in edits:
        op = getattr(edit, "op", None)
        text = getattr(edit, "text", None)
        if not isinstance(text, str):
            raise MissingDiffDataError(path, f"edit span has no text: {edit!r}")
        if op is EditOp.EQUAL:
            continue
        if op is EditOp.INSERT:
            added += len(text)
        elif op is EditOp.DELETE:
            removed += len(text)
        else:
            raise MissingDiffDataError(path, f"unknown edit op: {op!r}")
    return added, removed


def _count_side(entry: ChangeEntry, cache: Mapping[str, Blob]) -> int:
    blob = cache.get(entry.blob_hash)
    if blob is None:
        raise MissingBlobError(entry.blob_hash, path=entry.name)
    try:
        return count_lines(blob)
    except BinaryContentError:
        logger.debug("Binary content in %s, counting as 0 lines", entry.name)
        return 0
