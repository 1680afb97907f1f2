"""Caller-facing operations wired on top of the pipewatch components."""
from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

from .aggregator import PipelineAggregator
from .config import PipewatchConfig
from .credentials import CredentialStore, YamlFileCredentialStore
from .errors import RequestValidationError
from .github.client import GitHubClient
from .github.models import AggregationResult, Credential, RunJobs
from .jobs import JobStepExpander, LogSynthesizer
from .repositories import RepositoryEnumerator
from .token_resolver import TokenResolver
from .workflows import RunStatusFetcher, WorkflowCollector

logger = logging.getLogger("pipewatch.service")


def _require(value: Any, name: str) -> str:
    text = str(value).strip() if value is not None else ''
    if not text:
        raise RequestValidationError(f"{name} is required")
    return text


def _require_id(value: Any, name: str) -> int:
    text = _require(value, name)
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise RequestValidationError(f"{name} must be a positive integer, got {text!r}")
    return int(text)


class PipelineService:
    """Entry point for the CLI (or any other caller)."""

    def __init__(
        self,
        config: Optional[PipewatchConfig] = None,
        client: Optional[GitHubClient] = None,
        store: Optional[CredentialStore] = None,
    ) -> None:
        self.config = config or PipewatchConfig()
        self.client = client or GitHubClient(self.config)
        if store is None and self.config.credentials_file:
            store = YamlFileCredentialStore(self.config.credentials_file)
        self.store = store

        self.resolver = TokenResolver(self.client, store=self.store, default_token=self.config.default_token)
        self.enumerator = RepositoryEnumerator(
            self.client,
            include_forks=self.config.include_forks,
            include_archived=self.config.include_archived,
        )
        self.collector = WorkflowCollector(self.client)
        self.run_fetcher = RunStatusFetcher(self.client)
        self.expander = JobStepExpander(self.client)
        self.synthesizer = LogSynthesizer()
        self.aggregator = PipelineAggregator(
            self.enumerator, self.collector, self.run_fetcher, max_workers=self.config.max_workers
        )

    def resolve_token(self, principal_id: Optional[str] = None, header_token: Optional[str] = None) -> Credential:
        return self.resolver.resolve(principal_id, header_token)

    def list_organizations(self, credential: Credential) -> List[str]:
        """Logins of the organizations the credential belongs to."""
        return [o.get('login') for o in self.client.list_user_organizations(credential) if o.get('login')]

    def aggregate_pipelines(
        self,
        org: str,
        credential: Credential,
        include_runs: bool = True,
        deadline_sec: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AggregationResult:
        org = _require(org, "Organization name")
        if deadline_sec is None:
            deadline_sec = self.config.deadline_sec
        return self.aggregator.aggregate(
            org, credential, include_runs=include_runs, deadline_sec=deadline_sec, cancel_event=cancel_event
        )

    def list_run_jobs(self, owner: str, repo: str, run_id: Any, credential: Credential) -> RunJobs:
        owner = _require(owner, "owner")
        repo = _require(repo, "repo")
        return self.expander.expand(owner, repo, _require_id(run_id, "runId"), credential)

    def synthesize_job_log(
        self, owner: str, repo: str, run_id: Any, job_id: Any, credential: Credential
    ) -> str:
        owner = _require(owner, "owner")
        repo = _require(repo, "repo")
        run = _require_id(run_id, "runId")
        job = _require_id(job_id, "jobId")
        return self.synthesizer.synthesize(job, self.expander.expand(owner, repo, run, credential))

    def close(self) -> None:
        self.client.close()
