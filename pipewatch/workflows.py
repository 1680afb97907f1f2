"""Per-repository workflow listing and latest-run lookup."""
from __future__ import annotations

import logging
from typing import Optional

from .errors import RemoteConflict, RemoteForbidden, RemoteNotFound
from .github.client import GitHubClient
from .github.models import Credential, Repository, RepositoryWorkflows, Run, SkipReason, Workflow

logger = logging.getLogger("pipewatch.workflows")

# Failures that only concern one repository (archived, no Actions access, empty repo)
_REPOSITORY_LOCAL = {
    RemoteForbidden: SkipReason.FORBIDDEN,
    RemoteNotFound: SkipReason.NOT_FOUND,
    RemoteConflict: SkipReason.CONFLICT,
}


def _skip_reason(exc: Exception) -> Optional[SkipReason]:
    for exc_type, reason in _REPOSITORY_LOCAL.items():
        if isinstance(exc, exc_type):
            return reason
    return None


class WorkflowCollector:
    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    def collect(self, repo: Repository, credential: Credential) -> RepositoryWorkflows:
        """List a repository's workflows.

        403/404/409 produce a skipped outcome; anything else propagates.
        """
        try:
            raw = self.client.list_workflows(repo.owner, repo.name, credential)
        except (RemoteForbidden, RemoteNotFound, RemoteConflict) as e:
            reason = _skip_reason(e)
            logger.info(f"Skipping {repo.full_name}: workflows unavailable ({reason.value}: {e.message})")
            return RepositoryWorkflows(repository=repo, skip_reason=reason)

        workflows = tuple(Workflow.from_dict(w) for w in raw)
        logger.debug(f"{repo.full_name}: {len(workflows)} workflows")
        return RepositoryWorkflows(repository=repo, workflows=workflows)


class RunStatusFetcher:
    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    def fetch(self, owner: str, repo: str, workflow_id: int, credential: Credential) -> Optional[Run]:
        """Latest run of a workflow; None when it never ran.

        A 403/404/409 on the run listing also yields None.
        """
        try:
            data = self.client.get_latest_workflow_run(owner, repo, workflow_id, credential)
        except (RemoteForbidden, RemoteNotFound, RemoteConflict) as e:
            logger.warning(f"Failed to fetch latest run for workflow {workflow_id} in {owner}/{repo}: {e.message}")
            return None
        if data is None:
            return None
        return Run.from_dict(data)
