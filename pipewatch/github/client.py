"""GitHub REST client for repository, workflow, run and job listings."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests

from ..config import PipewatchConfig
from .models import Credential
from .rate_limit import (
    auth_headers,
    make_rate_limited_session,
    raise_for_github_status,
    request_with_rate_limit,
)
from .utils import paginate


class BaseGitHubClient:
    """Transport shared by all requests of a process.

    The underlying session (and its bounded connection pool) is shared; the
    credential is passed explicitly with every call and never stored.
    """

    def __init__(
        self,
        config: Optional[PipewatchConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            config: Runtime configuration; defaults to ``PipewatchConfig()``
            session: Pre-built session, mainly for tests
        """
        self.config = config or PipewatchConfig()
        self.base_url = self.config.api_url.rstrip('/')
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session = session or make_rate_limited_session(
            user_agent=self.config.user_agent,
            pool_size=self.config.pool_size,
            retries=self.config.http_retries,
        )

    def _url(self, path: str) -> str:
        return urljoin(f"{self.base_url}/", path.lstrip('/'))

    def get(self, path: str, credential: Credential, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a path and return the decoded JSON body.

        Raises:
            RemoteAPIError: (or a subclass) for any non-2xx answer
            RemoteTransient: on network failure
        """
        url = self._url(path)
        self.logger.debug(f"GET {url} params={params}")
        resp = request_with_rate_limit(
            self._session,
            'GET',
            url,
            params=params,
            headers=auth_headers(credential.token),
            timeout=self.config.request_timeout,
            min_delay_sec=self.config.min_delay_sec,
            logger=self.logger,
        )
        raise_for_github_status(resp)
        if not resp.content:
            return None
        return resp.json()

    def paginate(
        self,
        path: str,
        credential: Credential,
        params: Optional[Dict[str, Any]] = None,
        items_key: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every page of a listing endpoint."""
        per_page = self.config.per_page
        base_params = dict(params or {})

        def fetch_page(page: int) -> Any:
            page_params = dict(base_params, per_page=per_page, page=page)
            return self.get(path, credential, params=page_params)

        return paginate(fetch_page, per_page, self.config.max_pages, items_key=items_key, label=path)

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> 'BaseGitHubClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class GitHubClient(BaseGitHubClient):
    """GitHub API client with the listings the aggregator needs."""

    def get_authenticated_user(self, credential: Credential) -> Dict[str, Any]:
        """Identity endpoint, used as the credential self-test."""
        return self.get("user", credential) or {}

    def list_user_organizations(self, credential: Credential) -> List[Dict[str, Any]]:
        return self.paginate("user/orgs", credential)

    def list_organization_repositories(self, org: str, credential: Credential) -> List[Dict[str, Any]]:
        """List all repositories of an organization (all pages)."""
        return self.paginate(f"orgs/{org}/repos", credential, params={'type': 'all'})

    def list_user_repositories(self, user: str, credential: Credential) -> List[Dict[str, Any]]:
        """List all public repositories owned by a user account (all pages)."""
        return self.paginate(f"users/{user}/repos", credential)

    def list_workflows(self, owner: str, repo: str, credential: Credential) -> List[Dict[str, Any]]:
        return self.paginate(
            f"repos/{owner}/{repo}/actions/workflows", credential, items_key='workflows'
        )

    def get_latest_workflow_run(
        self, owner: str, repo: str, workflow_id: int, credential: Credential
    ) -> Optional[Dict[str, Any]]:
        """Most recent run of a workflow, or None when it never ran."""
        data = self.get(
            f"repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs",
            credential,
            params={'per_page': 1},
        ) or {}
        runs = data.get('workflow_runs') or []
        return runs[0] if runs else None

    def list_run_jobs(
        self, owner: str, repo: str, run_id: int, credential: Credential
    ) -> Dict[str, Any]:
        """All jobs of a run with their embedded steps.

        Returns:
            ``{'total_count': int, 'jobs': [...]}``
        """
        path = f"repos/{owner}/{repo}/actions/runs/{run_id}/jobs"
        per_page = self.config.per_page
        total: Dict[str, Any] = {}

        def fetch_page(page: int) -> Any:
            data = self.get(path, credential, params={'per_page': per_page, 'page': page}) or {}
            total.setdefault('total_count', data.get('total_count'))
            return data

        jobs = paginate(fetch_page, per_page, self.config.max_pages, items_key='jobs', label=path)
        return {'total_count': total.get('total_count') or len(jobs), 'jobs': jobs}
