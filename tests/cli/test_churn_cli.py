"""Tests for the churn-insight command line."""

import pytest
import yaml
from typer.testing import CliRunner

from churn_insight.cli import app
from churn_insight.formatters.binary_formatter import decode_binary

runner = CliRunner()

T0 = 1_700_000_000


@pytest.fixture
def repo(git_repo, monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    git_repo.write("a.txt", "1\n2\n")
    git_repo.commit("add", T0)
    git_repo.write("a.txt", "1\n2\n3\n")
    git_repo.commit("grow", T0 + 86400, author="Bob", email="bob@example.com")
    return git_repo


class TestAnalyzeCommand:
    def test_text_to_stdout(self, repo):
        result = runner.invoke(app, ["analyze", str(repo.path)])
        assert result.exit_code == 0, result.output
        parsed = yaml.safe_load(result.stdout)
        assert parsed["global"] == {"days": [0, 1], "additions": [2, 1], "removals": [0, 0]}

    def test_people_to_file(self, repo, tmp_path):
        out = tmp_path / "churn.yaml"
        result = runner.invoke(app, ["analyze", str(repo.path), "--people", "-o", str(out)])
        assert result.exit_code == 0, result.output
        parsed = yaml.safe_load(out.read_text(encoding="utf-8"))
        assert sorted(parsed) == ["Alice", "Bob", "global"]

    def test_binary_to_file(self, repo, tmp_path):
        out = tmp_path / "churn.bin"
        result = runner.invoke(
            app, ["analyze", str(repo.path), "--format", "binary", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        data = out.read_bytes()
        assert decode_binary(data).people == {}
        assert decode_binary(data).global_series.additions == (2, 1)

    def test_invalid_format(self, repo):
        result = runner.invoke(app, ["analyze", str(repo.path), "--format", "json"])
        assert result.exit_code == 1

    def test_not_a_repository(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(app, ["analyze", str(empty)])
        assert result.exit_code == 1


class TestListAnalyses:
    def test_lists_churn(self):
        result = runner.invoke(app, ["list-analyses"])
        assert result.exit_code == 0
        assert "churn" in result.output
        assert "churn-people" in result.output
