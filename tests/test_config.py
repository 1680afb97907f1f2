import pytest

from pipewatch.config import PipewatchConfig

ENV_VARS = [
    "GITHUB_API", "GITHUB_PAT", "GITHUB_TOKEN", "GITHUB_REQ_DELAY", "GITHUB_REQ_TIMEOUT",
    "PIPEWATCH_HTTP_RETRIES", "PIPEWATCH_MAX_WORKERS", "PIPEWATCH_POOL_SIZE", "PIPEWATCH_MAX_PAGES",
    "PIPEWATCH_DEADLINE_SEC", "PIPEWATCH_CREDENTIALS_FILE", "PIPEWATCH_USER_AGENT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = PipewatchConfig.from_env()
    assert config.api_url == "https://api.github.com"
    assert config.default_token is None
    assert config.max_workers == 5
    assert config.http_retries == 0
    assert config.deadline_sec is None


def test_pat_preferred_over_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "from-token")
    assert PipewatchConfig.from_env().default_token == "from-token"
    monkeypatch.setenv("GITHUB_PAT", "from-pat")
    assert PipewatchConfig.from_env().default_token == "from-pat"


def test_overrides(monkeypatch):
    monkeypatch.setenv("GITHUB_API", "https://ghe.example.com/api/v3/")
    monkeypatch.setenv("PIPEWATCH_MAX_WORKERS", "8")
    monkeypatch.setenv("PIPEWATCH_DEADLINE_SEC", "12.5")
    monkeypatch.setenv("PIPEWATCH_CREDENTIALS_FILE", "/etc/pipewatch/creds.yml")

    config = PipewatchConfig.from_env()

    assert config.api_url == "https://ghe.example.com/api/v3"
    assert config.max_workers == 8
    assert config.deadline_sec == 12.5
    assert config.credentials_file == "/etc/pipewatch/creds.yml"


@pytest.mark.parametrize("name, value", [
    ("PIPEWATCH_MAX_WORKERS", "zero"),
    ("PIPEWATCH_MAX_WORKERS", "0"),
    ("GITHUB_REQ_TIMEOUT", "-1"),
])
def test_invalid_values_name_the_variable(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        PipewatchConfig.from_env()
