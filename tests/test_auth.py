from __future__ import annotations

import pytest

from gemgate.auth import (
    Authenticated,
    AuthFailure,
    AuthFailureReason,
    CredentialSource,
    authenticate,
    extract_credential,
)
from starlette.datastructures import Headers, QueryParams

SECRET = "s3cret"


def _auth(headers: dict | None = None, query: str = ""):
    return authenticate(Headers(headers or {}), QueryParams(query), SECRET)


def test_missing_credential_is_rejected():
    assert _auth() == AuthFailure(AuthFailureReason.MISSING)


def test_wrong_credential_is_rejected():
    assert _auth({"Authorization": "Bearer nope"}) == AuthFailure(AuthFailureReason.INVALID)


@pytest.mark.parametrize(
    "headers, query, source",
    [
        ({"x-goog-api-key": SECRET}, "", CredentialSource.API_KEY_HEADER),
        ({"Authorization": f"Bearer {SECRET}"}, "", CredentialSource.BEARER),
        ({"Authorization": f"bearer   {SECRET}  "}, "", CredentialSource.BEARER),
        ({}, f"key={SECRET}", CredentialSource.QUERY),
    ],
)
def test_each_source_authenticates(headers, query, source):
    assert _auth(headers, query) == Authenticated(source)


def test_api_key_header_takes_priority_over_bearer_and_query():
    headers = Headers({"x-goog-api-key": "first", "Authorization": "Bearer second"})
    credential, source = extract_credential(headers, QueryParams("key=third"))
    assert credential == "first"
    assert source is CredentialSource.API_KEY_HEADER


def test_bearer_takes_priority_over_query():
    credential, source = extract_credential(
        Headers({"Authorization": "Bearer second"}), QueryParams("key=third")
    )
    assert (credential, source) == ("second", CredentialSource.BEARER)


def test_non_bearer_authorization_is_ignored():
    credential, source = extract_credential(Headers({"Authorization": f"Basic {SECRET}"}), QueryParams(""))
    assert credential is None
    assert source is None


def test_first_match_wins_even_when_wrong():
    result = _auth({"x-goog-api-key": "wrong"}, f"key={SECRET}")
    assert result == AuthFailure(AuthFailureReason.INVALID)
