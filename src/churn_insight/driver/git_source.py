"""Read commits, tree changes and line diffs from a git repository via subprocess."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from difflib import SequenceMatcher
from pathlib import Path
from typing import Iterator, Optional

from ..churn.inputs import CommitInputs
from ..churn.lines import is_binary
from ..churn.models import Blob, ChangeEntry, Edit, EditOp, FileDiff, TreeChange
from ..exceptions import GitError
from ..logging_config import get_logger

logger = get_logger(__name__)

_NULL_SHA = "0" * 40
_GITLINK_MODE = "160000"
_SECONDS_PER_DAY = 86400


@dataclass
class CommitRecord:
    hash: str
    parents: tuple[str, ...]
    timestamp: int  # unix seconds
    author_name: str
    author_email: str


class IdentityTable:
    """Assigns stable integer ids to authors, keyed by lowercased email."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._names: list[str] = []

    def identify(self, name: str, email: str) -> int:
        key = email.strip().lower() or name.strip().lower()
        author_id = self._ids.get(key)
        if author_id is None:
            author_id = len(self._names)
            self._ids[key] = author_id
            self._names.append(name.strip() or email.strip())
        return author_id

    @property
    def reversed_people(self) -> list[str]:
        """Display names indexed by author id."""
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)


def encode_lines(lines: list[str], codes: dict[str, str]) -> str:
    """Map each distinct line to one code point, so string length counts lines."""
    out = []
    for line in lines:
        code = codes.get(line)
        if code is None:
            cp = 0x100 + len(codes)
            if cp >= 0xD800:
                cp += 0x800  # skip surrogates
            code = chr(cp)
            codes[line] = code
        out.append(code)
    return "".join(out)


def line_diff(old: str, new: str) -> FileDiff:
    """Line-level edit script between two texts."""
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    codes: dict[str, str] = {}
    edits: list[Edit] = []
    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            edits.append(Edit(EditOp.EQUAL, encode_lines(old_lines[i1:i2], codes)))
            continue
        if tag in ("delete", "replace"):
            edits.append(Edit(EditOp.DELETE, encode_lines(old_lines[i1:i2], codes)))
        if tag in ("insert", "replace"):
            edits.append(Edit(EditOp.INSERT, encode_lines(new_lines[j1:j2], codes)))
    return FileDiff(old_lines=len(old_lines), new_lines=len(new_lines), edits=tuple(edits))


class GitCommitSource:
    """Turn git history into a stream of ``CommitInputs``.

    Merge commits produce one presentation per parent; downstream gating
    decides which of them count.
    """

    # Unit separator keeps author names with "|" intact
    _LOG_FORMAT = "%H%x1f%P%x1f%at%x1f%aN%x1f%aE"

    def __init__(self, repo_path: str, max_commits: int = 0, first_parent: bool = False):
        self.repo_path = str(Path(repo_path).resolve())
        self.max_commits = max_commits
        self.first_parent = first_parent
        self._blobs: dict[str, Blob] = {}

    def is_git_repo(self) -> bool:
        try:
            self._git("rev-parse", "--git-dir")
        except GitError:
            return False
        return True

    def list_commits(self) -> list[CommitRecord]:
        """Commits oldest first, parents before children."""
        args = ["log", "--reverse", "--topo-order", f"--format={self._LOG_FORMAT}"]
        if self.first_parent:
            args.append("--first-parent")
        if self.max_commits:
            args.append(f"-n{self.max_commits}")
        raw = self._git(*args).decode("utf-8", errors="replace")

        commits = []
        for line in raw.splitlines():
            if not line.strip():
                continue
            parts = line.split("\x1f")
            if len(parts) != 5:
                logger.warning("Unparseable git log line: %r", line)
                continue
            sha, parents, ts, name, email = parts
            commits.append(
                CommitRecord(
                    hash=sha,
                    parents=tuple(parents.split()),
                    timestamp=int(ts),
                    author_name=name,
                    author_email=email,
                )
            )
        return commits

    def iter_inputs(
        self, commits: list[CommitRecord], identities: IdentityTable
    ) -> Iterator[CommitInputs]:
        """Yield one ``CommitInputs`` per (commit, parent) view."""
        if not commits:
            return
        origin = commits[0].timestamp
        for commit in commits:
            day = max(0, (commit.timestamp - origin) // _SECONDS_PER_DAY)
            author = identities.identify(commit.author_name, commit.author_email)
            parents = commit.parents[:1] if self.first_parent else commit.parents
            views: tuple[Optional[str], ...] = parents or (None,)
            for parent in views:
                yield self._inputs_for(commit, parent, day, author)

    def _inputs_for(
        self, commit: CommitRecord, parent: Optional[str], day: int, author: int
    ) -> CommitInputs:
        changes = self._tree_changes(commit.hash, parent)
        cache: dict[str, Blob] = {}
        diffs: dict[str, FileDiff] = {}
        for change in changes:
            for entry in (change.old, change.new):
                if entry is not None:
                    cache[entry.blob_hash] = self._blob(entry.blob_hash)
            if change.old is not None and change.new is not None:
                diffs[change.new.name] = self._file_diff(
                    cache[change.old.blob_hash], cache[change.new.blob_hash]
                )
        return CommitInputs(
            file_diffs=diffs,
            changes=changes,
            blob_cache=cache,
            day=day,
            author=author,
            commit_hash=commit.hash,
            parents=commit.parents,
        )

    def _tree_changes(self, sha: str, parent: Optional[str]) -> list[TreeChange]:
        args = ["diff-tree", "-r", "--raw", "--no-renames", "--no-commit-id", "-z"]
        if parent is None:
            args += ["--root", sha]
        else:
            args += [parent, sha]
        fields = self._git(*args).decode("utf-8", errors="surrogateescape").split("\x00")

        changes = []
        # -z output alternates ":meta" and path fields
        for meta, path in zip(fields[0::2], fields[1::2]):
            if not meta.startswith(":"):
                continue
            old_mode, new_mode, old_sha, new_sha, _status = meta[1:].split()
            if _GITLINK_MODE in (old_mode, new_mode):
                continue
            old = ChangeEntry(path, old_sha) if old_sha != _NULL_SHA else None
            new = ChangeEntry(path, new_sha) if new_sha != _NULL_SHA else None
            if old is None and new is None:
                continue
            changes.append(TreeChange(old=old, new=new))
        return changes

    def _blob(self, sha: str) -> Blob:
        blob = self._blobs.get(sha)
        if blob is None:
            blob = Blob(hash=sha, data=self._git("cat-file", "blob", sha))
            self._blobs[sha] = blob
        return blob

    @staticmethod
    def _file_diff(old: Blob, new: Blob) -> FileDiff:
        if is_binary(old.data) or is_binary(new.data):
            return FileDiff(old_lines=0, new_lines=0, edits=())
        return line_diff(old.data.decode("utf-8"), new.data.decode("utf-8"))

    def _git(self, *args: str) -> bytes:
        cmd = ["git", "-C", self.repo_path, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=60)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("git %s failed: %s", args[0], e)
            raise GitError(" ".join(args[:2]), str(e)) from e
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.warning("git %s exited with %d: %s", args[0], result.returncode, stderr)
            raise GitError(" ".join(args[:2]), stderr)
        return result.stdout
