from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response

from .auth import AuthFailure, authenticate
from .config import AppConfig, load_config
from .context import RequestContext
from .errors import GatewayFailure, authentication_error, configuration_error, internal_error
from .key_pool import KeyPool
from .proxy import GatewayEngine
from .routing import Route, route

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-api-key, x-goog-api-key",
    "Access-Control-Max-Age": "86400",
}


async def handle_request(engine: GatewayEngine, request: Request) -> Response:
    ctx = RequestContext()
    log = ctx.logger(__name__)
    log.info("%s %s", request.method, request.url.path)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    try:
        result = await _dispatch(engine, request, ctx)
    except Exception as exc:
        log.exception("Unhandled error while processing request")
        result = internal_error(str(exc) or type(exc).__name__)

    if isinstance(result, GatewayFailure):
        return result.to_response(ctx)
    return result


async def _dispatch(engine: GatewayEngine, request: Request, ctx: RequestContext):
    log = ctx.logger(__name__)
    config = engine.config
    if not config.is_configured or not engine.pool:
        log.error("Gateway is not configured: %s", config.describe())
        return configuration_error()

    outcome = authenticate(request.headers, request.query_params, config.auth_key)
    if isinstance(outcome, AuthFailure):
        log.warning("Authentication failed: %s", outcome.reason.value)
        return authentication_error()
    log.info("Authenticated via %s", outcome.source.value)

    ctx.key = engine.pool.select()
    log.info("Using upstream key #%s", ctx.key.marker)

    if route(request.url.path) is Route.TRANSLATING:
        return await engine.forward_chat_completion(request, ctx)
    return await engine.forward_transparent(request, ctx)


def create_app(
    config: Optional[AppConfig] = None,
    *,
    config_path: str | Path | None = None,
    pool: Optional[KeyPool] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    if config is None:
        config = load_config(config_path)
    logger.info("Gateway configuration: %s", config.describe())

    engine = GatewayEngine(config, pool=pool, transport=transport)

    app = FastAPI(title="gemgate", version="0.1.0", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.engine = engine

    @app.on_event("startup")
    async def _startup() -> None:
        await engine.ensure_client()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await engine.close()

    @app.api_route("/{full_path:path}", methods=PROXY_METHODS)
    async def gateway(full_path: str, request: Request) -> Response:
        return await handle_request(engine, request)

    return app


__all__ = ["create_app", "handle_request"]
