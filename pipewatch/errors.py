"""
Error taxonomy for pipeline aggregation.

Every error carries an HTTP-equivalent ``status_code`` and a human-readable
``message``. Messages coming from the GitHub API are passed through verbatim.
"""
from typing import Any, Dict, Optional


class PipewatchError(Exception):
    """Base class for all errors surfaced to callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "status": self.status_code}


class NoCredential(PipewatchError):
    """No credential source yielded a token."""
    status_code = 401


class InvalidCredential(PipewatchError):
    """The selected token failed the identity self-test."""
    status_code = 401


class RequestValidationError(PipewatchError):
    status_code = 400


class OrgOrUserNotFound(PipewatchError):
    """Neither the organization nor the user scope knows the name."""
    status_code = 404


class RemoteAPIError(PipewatchError):
    """Non-2xx answer from the GitHub API.

    ``status_code`` is the remote status unless a subclass maps it.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, status_code)
        self.url = url


class RemoteForbidden(RemoteAPIError):
    status_code = 403


class RemoteNotFound(RemoteAPIError):
    status_code = 404


class RemoteConflict(RemoteAPIError):
    status_code = 409


class RemoteRateLimited(RemoteAPIError):
    """Primary or secondary rate limit hit.

    Distinct from authorization failures even when GitHub answers with 403.
    """
    status_code = 429

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, 429, url)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        return data


class RemoteTransient(RemoteAPIError):
    """5xx answer or network failure; surfaced as 502."""
    status_code = 502

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, 502, url)
