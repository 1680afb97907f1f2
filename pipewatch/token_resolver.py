"""
Credential resolution for one request.

Sources are checked in a fixed order and the first *present* one wins:

1. the principal's stored credential
2. a token supplied by the caller (e.g. the ``x-github-token`` header)
3. the process-wide default (``GITHUB_PAT`` / ``GITHUB_TOKEN``)

The winner is then self-tested against ``GET /user``. A token that fails the
self-test is rejected outright; later sources are never tried in its place.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .credentials import CredentialStore
from .errors import InvalidCredential, NoCredential, RemoteAPIError, RemoteRateLimited, RemoteTransient
from .github.client import GitHubClient
from .github.models import Credential, TokenSource

logger = logging.getLogger("pipewatch.token_resolver")


class TokenResolver:
    def __init__(
        self,
        client: GitHubClient,
        store: Optional[CredentialStore] = None,
        default_token: Optional[str] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.default_token = (default_token or '').strip() or None

    def _stored_token(self, principal_id: str) -> Optional[str]:
        if self.store is None:
            return None
        try:
            record = self.store.lookup(principal_id)
        except Exception as e:
            logger.warning(f"Credential store lookup failed for principal {principal_id!r}: {e}")
            return None
        if record is None:
            return None
        return (record.token or '').strip() or None

    def select(
        self, principal_id: Optional[str] = None, header_token: Optional[str] = None
    ) -> Tuple[str, TokenSource]:
        """Pick the first present token without validating it.

        Raises:
            NoCredential: no source yielded a token
        """
        if principal_id:
            token = self._stored_token(principal_id)
            if token:
                return token, TokenSource.STORED

        header_token = (header_token or '').strip()
        if header_token:
            return header_token, TokenSource.HEADER

        if self.default_token:
            return self.default_token, TokenSource.ENVIRONMENT

        logger.warning("No GitHub token found (stored/header/env)")
        raise NoCredential("Missing token")

    def resolve(
        self, principal_id: Optional[str] = None, header_token: Optional[str] = None
    ) -> Credential:
        """Select and self-test a credential.

        Raises:
            NoCredential: nothing to select
            InvalidCredential: the selected token was rejected by ``GET /user``
            RemoteRateLimited: the self-test was rate limited
            RemoteTransient: the self-test could not reach GitHub
        """
        token, source = self.select(principal_id, header_token)
        credential = Credential(token=token, source=source)

        try:
            user = self.client.get_authenticated_user(credential)
        except (RemoteRateLimited, RemoteTransient):
            raise
        except RemoteAPIError as e:
            logger.warning(f"Token check failed via {source.value} ({credential.masked}): {e.message}")
            raise InvalidCredential("Bad credentials") from e

        logger.info(f"Using GitHub token from {source.value} ({credential.masked}) as {user.get('login', '?')}")
        return credential
