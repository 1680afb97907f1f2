"""GitHub REST client and models for Actions pipeline status.

Example usage:
    ```python
    from pipewatch.github import GitHubClient, Credential, TokenSource

    client = GitHubClient()
    cred = Credential(token="ghp_...", source=TokenSource.ENVIRONMENT)
    workflows = client.list_workflows("octo-org", "octo-repo", cred)
    ```
"""
from .client import BaseGitHubClient, GitHubClient
from .models import (
    AggregationResult,
    Credential,
    Job,
    Pipeline,
    Repository,
    RepositoryWorkflows,
    Run,
    RunJobs,
    SkippedRepository,
    SkipReason,
    Step,
    StoredCredential,
    TokenSource,
    Workflow,
)
from .rate_limit import (
    compute_retry_after,
    is_rate_limited,
    make_rate_limited_session,
    raise_for_github_status,
    request_with_rate_limit,
)
from .utils import filter_repositories, mask_token, paginate

__all__ = [
    'BaseGitHubClient',
    'GitHubClient',
    'AggregationResult',
    'Credential',
    'Job',
    'Pipeline',
    'Repository',
    'RepositoryWorkflows',
    'Run',
    'RunJobs',
    'SkippedRepository',
    'SkipReason',
    'Step',
    'StoredCredential',
    'TokenSource',
    'Workflow',
    'compute_retry_after',
    'is_rate_limited',
    'make_rate_limited_session',
    'raise_for_github_status',
    'request_with_rate_limit',
    'filter_repositories',
    'mask_token',
    'paginate',
]
