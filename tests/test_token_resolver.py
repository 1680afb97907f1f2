from unittest.mock import Mock

import pytest

from pipewatch.credentials import InMemoryCredentialStore
from pipewatch.errors import InvalidCredential, NoCredential, RemoteRateLimited, RemoteTransient
from pipewatch.github.models import StoredCredential, TokenSource
from pipewatch.token_resolver import TokenResolver

from conftest import make_response

VALID = {"stored-good-token-1", "header-good-token-1", "env-good-token-123"}


@pytest.fixture
def identity(session):
    """GET /user accepts only the tokens in VALID."""
    def handler(params, headers):
        token = headers.get("Authorization", "").replace("token ", "")
        if token in VALID:
            return make_response(200, {"login": "octocat"})
        return make_response(401, {"message": "Bad credentials"})
    session.add_handler("user", handler)
    return session


def resolver(client, stored=None, default="env-good-token-123"):
    store = InMemoryCredentialStore(stored or {})
    return TokenResolver(client, store=store, default_token=default)


def sent_tokens(session):
    return [c[3]["Authorization"] for c in session.calls_to("user")]


def test_stored_credential_wins_over_header_and_env(client, identity):
    r = resolver(client, {"alice": "stored-good-token-1"})

    cred = r.resolve("alice", header_token="header-good-token-1")

    assert cred.source is TokenSource.STORED
    assert cred.token == "stored-good-token-1"


def test_invalid_stored_credential_never_falls_through(client, identity):
    r = resolver(client, {"alice": "stored-revoked-token"})

    with pytest.raises(InvalidCredential) as exc:
        r.resolve("alice", header_token="header-good-token-1")

    assert exc.value.status_code == 401
    assert sent_tokens(identity) == ["token stored-revoked-token"]


def test_header_used_when_principal_has_nothing_stored(client, identity):
    r = resolver(client, {"bob": "stored-good-token-1"})
    cred = r.resolve("alice", header_token="header-good-token-1")
    assert cred.source is TokenSource.HEADER


def test_empty_stored_token_is_absent(client, identity):
    r = resolver(client, {"alice": StoredCredential(token="  ", client_id="Iv1.abc")})
    cred = r.resolve("alice", header_token=None)
    assert cred.source is TokenSource.ENVIRONMENT


def test_anonymous_request_uses_environment_default(client, identity):
    cred = resolver(client).resolve(None, None)
    assert cred.source is TokenSource.ENVIRONMENT
    assert cred.token == "env-good-token-123"


def test_header_token_is_always_self_tested(client, identity):
    with pytest.raises(InvalidCredential):
        resolver(client).resolve(None, header_token="header-bogus-token")
    assert sent_tokens(identity) == ["token header-bogus-token"]


def test_no_source_raises_no_credential(client, identity):
    with pytest.raises(NoCredential) as exc:
        resolver(client, default=None).resolve(None, "   ")
    assert exc.value.status_code == 401
    assert identity.calls == []


def test_store_failure_is_treated_as_absent(client, identity):
    store = Mock()
    store.lookup.side_effect = RuntimeError("database down")
    r = TokenResolver(client, store=store, default_token="env-good-token-123")

    assert r.resolve("alice", "header-good-token-1").source is TokenSource.HEADER


def test_rate_limited_self_test_is_not_an_auth_failure(client, session):
    session.add("user", {"message": "API rate limit exceeded"}, status=403,
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "0"})
    with pytest.raises(RemoteRateLimited):
        resolver(client).resolve(None, None)


def test_unreachable_api_is_transient(client, session):
    session.add("user", {"message": "Bad gateway"}, status=502)
    with pytest.raises(RemoteTransient):
        resolver(client).resolve(None, None)


def test_credential_repr_hides_token(client, identity):
    cred = resolver(client).resolve(None, None)
    assert "env-good-token-123" not in repr(cred)
    assert "env-good-token-123" not in str(cred)
    assert cred.masked == "env-**********-123"
