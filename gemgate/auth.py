from __future__ import annotations

import enum
import hmac
from dataclasses import dataclass
from typing import Mapping, Optional, Union


API_KEY_HEADER = "x-goog-api-key"
API_KEY_QUERY_PARAM = "key"


class CredentialSource(str, enum.Enum):
    API_KEY_HEADER = "x-goog-api-key header"
    BEARER = "Authorization Bearer"
    QUERY = "URL parameter"


class AuthFailureReason(str, enum.Enum):
    MISSING = "missing credential"
    INVALID = "invalid credential"


@dataclass(frozen=True)
class Authenticated:
    source: CredentialSource


@dataclass(frozen=True)
class AuthFailure:
    reason: AuthFailureReason


AuthResult = Union[Authenticated, AuthFailure]


def extract_credential(
    headers: Mapping[str, str],
    query: Mapping[str, str],
) -> tuple[Optional[str], Optional[CredentialSource]]:
    """Return the caller credential and where it came from.

    Checked in order: the API key header, an ``Authorization: Bearer`` header,
    then the ``key`` query parameter. The first non-empty value wins.
    """
    api_key = (headers.get(API_KEY_HEADER) or "").strip()
    if api_key:
        return api_key, CredentialSource.API_KEY_HEADER

    authorization = headers.get("authorization") or ""
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token, CredentialSource.BEARER

    param = (query.get(API_KEY_QUERY_PARAM) or "").strip()
    if param:
        return param, CredentialSource.QUERY

    return None, None


def authenticate(
    headers: Mapping[str, str],
    query: Mapping[str, str],
    shared_secret: str,
) -> AuthResult:
    credential, source = extract_credential(headers, query)
    if credential is None or source is None:
        return AuthFailure(AuthFailureReason.MISSING)
    if not hmac.compare_digest(credential.encode("utf-8"), shared_secret.encode("utf-8")):
        return AuthFailure(AuthFailureReason.INVALID)
    return Authenticated(source)
