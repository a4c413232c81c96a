from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from fastapi.responses import JSONResponse

from .context import RequestContext


class FailureKind(str, enum.Enum):
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    TRANSLATION = "translation"
    NOT_IMPLEMENTED = "not_implemented"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL = "internal"


@dataclass(frozen=True)
class GatewayFailure:
    """A terminal failure produced by one stage of request handling."""

    kind: FailureKind
    status_code: int
    error: str
    message: Optional[str] = None

    def to_response(self, ctx: Optional[RequestContext] = None) -> JSONResponse:
        body: dict = {"error": self.error}
        headers = ctx.trace_headers() if ctx is not None else {"Access-Control-Allow-Origin": "*"}
        if self.message is not None:
            body["message"] = self.message
            if ctx is not None:
                body["requestId"] = ctx.request_id
        return JSONResponse(body, status_code=self.status_code, headers=headers)


def configuration_error() -> GatewayFailure:
    return GatewayFailure(FailureKind.CONFIGURATION, 500, "server configuration error")


def authentication_error() -> GatewayFailure:
    return GatewayFailure(FailureKind.AUTHENTICATION, 401, "authentication failed")


def translation_error(message: str) -> GatewayFailure:
    return GatewayFailure(FailureKind.TRANSLATION, 500, "internal server error", message)


def streaming_not_implemented() -> GatewayFailure:
    return GatewayFailure(
        FailureKind.NOT_IMPLEMENTED,
        501,
        "streaming chat completions are not supported",
        "use stream=false or the native streamGenerateContent endpoint",
    )


def upstream_unavailable(message: str) -> GatewayFailure:
    return GatewayFailure(FailureKind.UPSTREAM_UNAVAILABLE, 502, "upstream request failed", message)


def internal_error(message: str) -> GatewayFailure:
    return GatewayFailure(FailureKind.INTERNAL, 500, "internal server error", message)
