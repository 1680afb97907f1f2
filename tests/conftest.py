import json
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import pytest
import requests

from pipewatch.config import PipewatchConfig
from pipewatch.github.client import GitHubClient
from pipewatch.github.models import Credential, TokenSource

API = "https://api.github.com"


def make_response(status: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None,
                  url: str = API) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = b"" if payload is None else json.dumps(payload).encode()
    resp.encoding = "utf-8"
    resp.headers.update(headers or {})
    resp.url = url
    resp.reason = "OK" if status < 400 else "Error"
    return resp


class FakeSession:
    """Routes GET paths to canned responses and records every call."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[Dict[str, Any], Dict[str, str]], requests.Response]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any], Dict[str, str]]] = []

    def add(self, path: str, payload: Any = None, status: int = 200,
            headers: Optional[Dict[str, str]] = None) -> None:
        self.routes[path] = lambda params, hdrs: make_response(status, payload, headers, f"{API}/{path}")

    def add_list(self, path: str, items: List[Any], items_key: Optional[str] = None,
                 extra: Optional[Dict[str, Any]] = None) -> None:
        """Serve ``items`` paginated by the request's page/per_page params."""
        def handler(params: Dict[str, Any], hdrs: Dict[str, str]) -> requests.Response:
            per_page = int(params.get("per_page", 30))
            page = int(params.get("page", 1))
            chunk = items[(page - 1) * per_page:page * per_page]
            payload: Any = chunk
            if items_key is not None:
                payload = dict(extra or {}, **{items_key: chunk})
            return make_response(200, payload, url=f"{API}/{path}")
        self.routes[path] = handler

    def add_handler(self, path: str, handler: Callable[[Dict[str, Any], Dict[str, str]], requests.Response]) -> None:
        self.routes[path] = handler

    def request(self, method: str, url: str, params=None, headers=None, **kwargs) -> requests.Response:
        path = urlparse(url).path.lstrip("/")
        params = dict(params or {})
        headers = dict(headers or {})
        self.calls.append((method, path, params, headers))
        handler = self.routes.get(path)
        if handler is None:
            return make_response(404, {"message": "Not Found"}, url=url)
        return handler(params, headers)

    def calls_to(self, path: str) -> List[Tuple[str, str, Dict[str, Any], Dict[str, str]]]:
        return [c for c in self.calls if c[1] == path]

    def close(self) -> None:
        pass


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def config() -> PipewatchConfig:
    return PipewatchConfig(max_workers=3)


@pytest.fixture
def client(config: PipewatchConfig, session: FakeSession) -> GitHubClient:
    return GitHubClient(config, session=session)


@pytest.fixture
def credential() -> Credential:
    return Credential(token="ghp_test_token_123456", source=TokenSource.ENVIRONMENT)


def workflow(wf_id: int, name: str) -> Dict[str, Any]:
    return {
        "id": wf_id,
        "name": name,
        "path": f".github/workflows/{name.lower()}.yml",
        "state": "active",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-02-01T00:00:00Z",
        "html_url": f"https://github.com/acme/x/actions/workflows/{name.lower()}.yml",
    }


def run(run_id: int, conclusion: Optional[str] = "success") -> Dict[str, Any]:
    return {
        "id": run_id,
        "status": "completed",
        "conclusion": conclusion,
        "event": "push",
        "head_branch": "main",
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": "2024-03-01T10:05:00Z",
        "html_url": f"https://github.com/acme/x/actions/runs/{run_id}",
        "actor": {"login": "octocat"},
    }


def repo(name: str, owner: str = "acme", **flags: Any) -> Dict[str, Any]:
    return dict({"name": name, "full_name": f"{owner}/{name}", "owner": {"login": owner}}, **flags)
