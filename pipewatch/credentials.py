"""
Credential stores: principal id -> optional stored GitHub credential.

Storage and decryption belong to the store; the resolver only calls
:meth:`CredentialStore.lookup`.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .github.models import StoredCredential

logger = logging.getLogger("pipewatch.credentials")


class CredentialStore(ABC):
    """Lookup capability for user-configured credentials."""

    @abstractmethod
    def lookup(self, principal_id: str) -> Optional[StoredCredential]:
        """Return the stored credential of a principal, or None."""


class InMemoryCredentialStore(CredentialStore):
    def __init__(self, records: Optional[Mapping[str, Union[StoredCredential, Dict[str, Any], str]]] = None) -> None:
        self._records: Dict[str, StoredCredential] = {}
        for principal_id, record in (records or {}).items():
            self.put(principal_id, record)

    def put(self, principal_id: str, record: Union[StoredCredential, Dict[str, Any], str]) -> None:
        if isinstance(record, str):
            record = StoredCredential(token=record)
        elif isinstance(record, dict):
            record = StoredCredential.from_dict(record)
        self._records[str(principal_id)] = record

    def lookup(self, principal_id: str) -> Optional[StoredCredential]:
        return self._records.get(str(principal_id))


class YamlFileCredentialStore(CredentialStore):
    """Reads credentials from a YAML mapping keyed by principal id.

    Example file::

        alice:
          token: ghp_xxx
          client_id: Iv1.abc
          callback_url: http://localhost:5000/auth/github/callback
        bob: ghp_yyy

    The file is read on every lookup so edits are picked up without a restart.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"Credential file {self.path} does not exist")
            return {}
        with open(self.path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Credential file {self.path} must contain a mapping")
        return data

    def lookup(self, principal_id: str) -> Optional[StoredCredential]:
        record = self._load().get(str(principal_id))
        if record is None:
            return None
        if isinstance(record, str):
            return StoredCredential(token=record)
        if isinstance(record, dict):
            return StoredCredential.from_dict(record)
        raise ValueError(f"Unsupported credential record for principal {principal_id!r}")
