"""Repository enumeration for an organization or, failing that, a user account."""
from __future__ import annotations

import logging
from typing import List

from .errors import OrgOrUserNotFound, RemoteNotFound
from .github.client import GitHubClient
from .github.models import Credential, Repository
from .github.utils import filter_repositories, unique_by

logger = logging.getLogger("pipewatch.repositories")


class RepositoryEnumerator:
    def __init__(
        self,
        client: GitHubClient,
        include_forks: bool = True,
        include_archived: bool = True,
    ) -> None:
        self.client = client
        self.include_forks = include_forks
        self.include_archived = include_archived

    def enumerate(self, name: str, credential: Credential) -> List[Repository]:
        """All repositories visible under ``name``.

        The organization listing is tried first. Only a 404 there leads to a
        single retry as a user account; every other failure propagates.

        Raises:
            OrgOrUserNotFound: both listings answered 404
        """
        try:
            raw = self.client.list_organization_repositories(name, credential)
        except RemoteNotFound:
            logger.info(f"Organization '{name}' not found or inaccessible. Retrying as a user account...")
            try:
                raw = self.client.list_user_repositories(name, credential)
            except RemoteNotFound as e:
                raise OrgOrUserNotFound(f"Organization or user '{name}' not found") from e

        repos = [Repository.from_dict(r, default_owner=name) for r in raw]
        repos = unique_by(repos, key=lambda r: r.key)
        repos = filter_repositories(
            repos, include_archived=self.include_archived, include_forks=self.include_forks
        )
        logger.info(f"Found {len(repos)} repositories under {name}")
        return repos
