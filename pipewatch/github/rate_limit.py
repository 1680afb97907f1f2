"""
Shared GitHub HTTP helpers: bounded sessions, polite delays, and classification of
error responses (rate limits in particular) into the pipewatch error taxonomy.

Nothing here sleeps waiting for a rate limit reset or retries a failed call; a
rate-limited response is raised as :class:`RemoteRateLimited` with a reset hint
so the caller can decide how to back off.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import (
    RemoteAPIError,
    RemoteConflict,
    RemoteForbidden,
    RemoteNotFound,
    RemoteRateLimited,
    RemoteTransient,
)

GITHUB_ACCEPT = "application/vnd.github+json"


def make_rate_limited_session(
    user_agent: str = "pipewatch",
    pool_size: int = 10,
    retries: int = 0,
) -> requests.Session:
    """Create a requests Session with a size-bounded connection pool.

    The session carries no credential: callers pass ``Authorization`` per request.
    ``retries`` feeds urllib3's Retry for connection-level failures only; status
    based retries are left to the caller.
    """
    s = requests.Session()
    retry_strategy = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        pool_block=True,
    )
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update({
        "Accept": GITHUB_ACCEPT,
        "User-Agent": user_agent or "pipewatch",
    })
    return s


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"token {token}"}


def compute_retry_after(resp: requests.Response, now: Optional[float] = None) -> Optional[float]:
    """Seconds until the rate limit resets, from Retry-After or X-RateLimit-Reset."""
    retry_after = resp.headers.get("Retry-After")
    if retry_after:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            pass
    reset = resp.headers.get("X-RateLimit-Reset")
    if reset:
        try:
            now = time.time() if now is None else now
            return max(0.0, int(reset) - now)
        except ValueError:
            pass
    return None


def _remote_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    text = (resp.text or "").strip()
    return text or resp.reason or f"HTTP {resp.status_code}"


def is_rate_limited(resp: requests.Response) -> bool:
    if resp.status_code == 429:
        return True
    if resp.status_code != 403:
        return False
    if resp.headers.get("X-RateLimit-Remaining") == "0":
        return True
    # Secondary rate limits come back as 403 with an explanatory message
    return "rate limit" in _remote_message(resp).lower()


def raise_for_github_status(resp: requests.Response) -> None:
    """Raise the matching RemoteAPIError subclass for a non-2xx response."""
    code = resp.status_code
    if 200 <= code < 300:
        return
    message = _remote_message(resp)
    url = resp.url
    if is_rate_limited(resp):
        raise RemoteRateLimited(message, retry_after=compute_retry_after(resp), url=url)
    if code == 403:
        raise RemoteForbidden(message, url=url)
    if code == 404:
        raise RemoteNotFound(message, url=url)
    if code == 409:
        raise RemoteConflict(message, url=url)
    if code >= 500:
        raise RemoteTransient(message, url=url)
    raise RemoteAPIError(message, status_code=code, url=url)


def request_with_rate_limit(
    session: requests.Session,
    method: str,
    url: str,
    *,
    logger: Optional[logging.Logger] = None,
    min_delay_sec: float = 0.0,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GitHub API request with:
    - optional pre-request delay (politeness)
    - network failures mapped to RemoteTransient
    - rate limit logging with the reset hint

    The response is returned as-is; use :func:`raise_for_github_status` on it.
    """
    log = logger or logging.getLogger("pipewatch.github.rate_limit")
    if min_delay_sec > 0:
        time.sleep(min_delay_sec)

    try:
        resp = session.request(method, url, **kwargs)
    except requests.RequestException as e:
        log.warning("Request error on %s %s: %s", method, url, e)
        raise RemoteTransient(str(e), url=url) from e

    if is_rate_limited(resp):
        log.warning("GitHub rate limit hit on %s %s (HTTP %s, reset in %s s)",
                    method, url, resp.status_code, compute_retry_after(resp))
    elif resp.status_code >= 500:
        log.warning("Transient HTTP %s on %s %s", resp.status_code, method, url)

    return resp
