"""Shared test fixtures for Churn Insight tests."""

import hashlib
import os
import shutil
import subprocess

import pytest

from churn_insight.churn.models import Blob, ChangeEntry, Edit, EditOp, FileDiff, TreeChange
from churn_insight.churn.inputs import CommitInputs


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class CommitBuilder:
    """Accumulates tree changes, blobs and edit scripts for one commit."""

    def __init__(self, day=0, author=0, commit_hash="", parents=()):
        self.day = day
        self.author = author
        self.commit_hash = commit_hash
        self.parents = tuple(parents)
        self.changes = []
        self.cache = {}
        self.diffs = {}

    def _blob(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        sha = hashlib.sha1(data).hexdigest()
        self.cache[sha] = Blob(hash=sha, data=data)
        return sha

    def insert(self, path, content):
        self.changes.append(TreeChange(old=None, new=ChangeEntry(path, self._blob(content))))
        return self

    def delete(self, path, content):
        self.changes.append(TreeChange(old=ChangeEntry(path, self._blob(content)), new=None))
        return self

    def modify(self, path, edits, old=b"old\n", new=b"new\n"):
        """``edits`` is a list of (op, text) pairs, op in "=", "+", "-"."""
        ops = {"=": EditOp.EQUAL, "+": EditOp.INSERT, "-": EditOp.DELETE}
        self.changes.append(
            TreeChange(old=ChangeEntry(path, self._blob(old)), new=ChangeEntry(path, self._blob(new)))
        )
        self.diffs[path] = FileDiff(
            old_lines=0,
            new_lines=0,
            edits=tuple(Edit(ops[op], text) for op, text in edits),
        )
        return self

    def build(self):
        return CommitInputs(
            file_diffs=dict(self.diffs),
            changes=list(self.changes),
            blob_cache=dict(self.cache),
            day=self.day,
            author=self.author,
            commit_hash=self.commit_hash,
            parents=self.parents,
        )


@pytest.fixture
def commit():
    """Factory for ``CommitBuilder`` instances."""
    return CommitBuilder


@pytest.fixture
def lines():
    """Build text content with ``n`` newline-terminated lines."""

    def _lines(n, prefix="line"):
        return "".join(f"{prefix} {i}\n" for i in range(n))

    return _lines


# ── Git repositories ──────────────────────────────────────────────


class GitRepo:
    """Tiny helper to script commits with fixed dates and authors."""

    def __init__(self, path):
        self.path = path
        self._run("init", "-q")
        self._run("config", "user.name", "Test")
        self._run("config", "user.email", "test@example.com")
        self._run("config", "commit.gpgsign", "false")

    def _run(self, *args, env=None):
        full_env = dict(os.environ)
        if env:
            full_env.update(env)
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            capture_output=True,
            text=True,
            env=full_env,
        )
        assert result.returncode == 0, result.stderr
        return result.stdout.strip()

    def write(self, name, content):
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")

    def remove(self, name):
        self._run("rm", "-q", name)

    @staticmethod
    def _env(timestamp, author, email):
        date = f"{timestamp} +0000"
        return {
            "GIT_AUTHOR_NAME": author,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_NAME": author,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_COMMITTER_DATE": date,
        }

    def commit(self, message, timestamp, author="Alice", email="alice@example.com"):
        env = self._env(timestamp, author, email)
        self._run("add", "-A")
        self._run("commit", "-q", "--allow-empty", "-m", message, env=env)
        return self._run("rev-parse", "HEAD")

    def checkout(self, *args):
        self._run("checkout", "-q", *args)

    def merge(self, branch, message, timestamp, author="Alice", email="alice@example.com"):
        env = self._env(timestamp, author, email)
        self._run("merge", "-q", "--no-ff", "-m", message, branch, env=env)
        return self._run("rev-parse", "HEAD")

    def current_branch(self):
        return self._run("rev-parse", "--abbrev-ref", "HEAD")


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository in a temporary directory."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    return GitRepo(repo_dir)
