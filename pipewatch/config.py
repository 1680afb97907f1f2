"""Runtime configuration read from the environment (and .env via python-dotenv)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_URL = "https://api.github.com"
# GitHub caps per_page at 100
MAX_PER_PAGE = 100


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class PipewatchConfig:
    """Configuration for the pipeline aggregator."""

    api_url: str = DEFAULT_API_URL
    default_token: Optional[str] = None
    user_agent: str = "pipewatch"
    request_timeout: float = 30.0
    min_delay_sec: float = 0.0
    http_retries: int = 0
    max_workers: int = 5
    pool_size: int = 10
    per_page: int = MAX_PER_PAGE
    max_pages: int = 50
    deadline_sec: Optional[float] = None
    credentials_file: Optional[str] = None
    include_forks: bool = True
    include_archived: bool = True

    def __post_init__(self) -> None:
        self.api_url = self.api_url.rstrip("/")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.per_page = max(1, min(self.per_page, MAX_PER_PAGE))

    @classmethod
    def from_env(cls) -> "PipewatchConfig":
        """Build a config from environment variables.

        Call ``load_dotenv()`` beforehand to pick up a local .env file.
        """
        token = os.getenv("GITHUB_PAT") or os.getenv("GITHUB_TOKEN") or None
        return cls(
            api_url=os.getenv("GITHUB_API", DEFAULT_API_URL),
            default_token=token,
            user_agent=os.getenv("PIPEWATCH_USER_AGENT", "pipewatch"),
            request_timeout=_env_float("GITHUB_REQ_TIMEOUT", 30.0),
            min_delay_sec=_env_float("GITHUB_REQ_DELAY", 0.0),
            http_retries=_env_int("PIPEWATCH_HTTP_RETRIES", 0),
            max_workers=_env_int("PIPEWATCH_MAX_WORKERS", 5, minimum=1),
            pool_size=_env_int("PIPEWATCH_POOL_SIZE", 10, minimum=1),
            max_pages=_env_int("PIPEWATCH_MAX_PAGES", 50, minimum=1),
            deadline_sec=_env_float("PIPEWATCH_DEADLINE_SEC", None),
            credentials_file=os.getenv("PIPEWATCH_CREDENTIALS_FILE") or None,
        )
