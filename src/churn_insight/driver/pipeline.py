"""Drive a registered churn analysis over a git repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..churn.analysis import FACT_REVERSED_PEOPLE_DICT, ChurnAnalysis
from ..churn.models import AnalysisResult
from ..config import ChurnConfig
from ..exceptions import AnalysisError, GitError
from ..logging_config import get_logger
from ..registry import AnalysisRegistry, register_default_analyses
from .git_source import GitCommitSource, IdentityTable

logger = get_logger(__name__)


@dataclass
class ChurnRun:
    analysis: ChurnAnalysis
    result: AnalysisResult
    commits: int
    presentations: int
    consumed: int


def run_churn(
    repo_path: str,
    config: Optional[ChurnConfig] = None,
    registry: Optional[AnalysisRegistry] = None,
) -> ChurnRun:
    """Walk the history of ``repo_path`` and return the finalized churn.

    Author ids are assigned for the whole history before configuration, so
    the identity table is complete by the time ``finalize`` resolves names.
    """
    config = config or ChurnConfig()
    if registry is None:
        registry = register_default_analyses(AnalysisRegistry())

    source = GitCommitSource(
        repo_path, max_commits=config.max_commits, first_parent=config.first_parent
    )
    if not source.is_git_repo():
        raise GitError("rev-parse", f"not a git repository: {repo_path}")

    commits = source.list_commits()
    identities = IdentityTable()
    for commit in commits:
        identities.identify(commit.author_name, commit.author_email)
    logger.info("Read %d commits by %d authors", len(commits), len(identities))

    analysis = registry.create("churn")
    if not isinstance(analysis, ChurnAnalysis):
        raise AnalysisError(
            f"Analysis registered as 'churn' is {type(analysis).__name__}, not ChurnAnalysis"
        )
    facts = config.to_facts()
    facts[FACT_REVERSED_PEOPLE_DICT] = identities.reversed_people
    analysis.configure(facts)
    analysis.initialize()

    presentations = 0
    consumed = 0
    for inputs in source.iter_inputs(commits, identities):
        presentations += 1
        if analysis.consume(inputs):
            consumed += 1

    return ChurnRun(
        analysis=analysis,
        result=analysis.finalize(),
        commits=len(commits),
        presentations=presentations,
        consumed=consumed,
    )
