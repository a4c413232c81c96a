from __future__ import annotations

import asyncio
import json
import re
import time
from typing import Mapping, Optional, Sequence, Union

import httpx
from fastapi import Request, Response
from pydantic import ValidationError
from starlette.responses import StreamingResponse

from .auth import API_KEY_QUERY_PARAM
from .config import AppConfig
from .context import RequestContext
from .errors import GatewayFailure, streaming_not_implemented, translation_error, upstream_unavailable
from .http_client import bounded_timeout, create_async_client, streaming_timeout
from .key_pool import KeyPool
from .schemas import ChatCompletionRequest
from .translation import (
    build_chat_response,
    build_generate_request,
    extract_candidate_text,
    select_operation,
)

FORWARDED_REQUEST_HEADERS = (
    "content-type",
    "accept",
    "user-agent",
    "accept-language",
    "accept-encoding",
    "x-goog-api-client",
)

RETURNED_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "content-encoding",
    "transfer-encoding",
)

BODYLESS_METHODS = {"GET", "HEAD"}

_API_VERSION_SEGMENT = re.compile(r"^/v\d+(?:alpha|beta)?\d*(?=/|$)")

HandlerResult = Union[Response, GatewayFailure]


def _copy_allowed_headers(source: Mapping[str, str], allowed: Sequence[str]) -> dict[str, str]:
    copied = {}
    for name in allowed:
        value = source.get(name)
        if value:
            copied[name] = value
    return copied


def _query_with_upstream_key(
    query_items: Sequence[tuple[str, str]],
    api_key: str,
) -> list[tuple[str, str]]:
    updated = [(name, value) for name, value in query_items if name != API_KEY_QUERY_PARAM]
    updated.append((API_KEY_QUERY_PARAM, api_key))
    return updated


class GatewayEngine:
    """Forwards authenticated requests to the upstream API."""

    def __init__(
        self,
        config: AppConfig,
        *,
        pool: Optional[KeyPool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._pool = pool if pool is not None else KeyPool(config.api_keys)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def pool(self) -> KeyPool:
        return self._pool

    async def ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = create_async_client(
                    timeout=self._config.preferences.request_timeout,
                    proxy=self._config.preferences.proxy,
                    transport=self._transport,
                )
            return self._client

    async def close(self) -> None:
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    def upstream_path(self, path: str) -> str:
        """Prefix the configured API version unless the path already names one."""
        if not path.startswith("/"):
            path = f"/{path}"
        if _API_VERSION_SEGMENT.match(path):
            return path
        return f"/{self._config.upstream.api_version}{path}"

    async def forward_chat_completion(self, request: Request, ctx: RequestContext) -> HandlerResult:
        log = ctx.logger(__name__)
        if ctx.key is None:
            raise RuntimeError("no upstream key selected for request")

        raw = await request.body()
        try:
            chat = ChatCompletionRequest.model_validate_json(raw)
        except ValidationError as exc:
            log.warning("Rejected chat completion body: %d validation errors", exc.error_count())
            return translation_error(f"invalid chat completion request: {exc.errors()[0]['msg']}")

        model = self._config.model_map.translate(chat.model)
        operation = select_operation(chat.stream)
        payload = build_generate_request(chat).model_dump(exclude_none=True)
        url = self._config.upstream.model_operation_url(model, operation)
        log.info("Forwarding chat completion to %s:%s (stream: %s)", model, operation, bool(chat.stream))

        client = await self.ensure_client()
        upstream_request = client.build_request(
            "POST",
            url,
            headers={"Content-Type": "application/json"},
            content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            params={API_KEY_QUERY_PARAM: ctx.key.key},
            timeout=bounded_timeout(self._config.preferences.request_timeout),
        )
        started = time.monotonic()
        try:
            response = await client.send(upstream_request, stream=True)
        except httpx.RequestError as exc:
            log.error("Upstream request failed: %s", type(exc).__name__)
            return upstream_unavailable(f"{type(exc).__name__}: {exc}")

        try:
            log.info("Upstream responded %s (%dms)", response.status_code, (time.monotonic() - started) * 1000)
            if not response.is_success:
                body = await response.aread()
                log.warning("Relaying upstream error %s", response.status_code)
                return Response(
                    content=body,
                    status_code=response.status_code,
                    media_type=response.headers.get("content-type", "application/json"),
                    headers=ctx.trace_headers(),
                )

            if chat.stream:
                log.warning("Streaming chat completion requested; translation not supported")
                return streaming_not_implemented()

            upstream_json = json.loads(await response.aread())
        finally:
            await response.aclose()

        completion = build_chat_response(ctx.request_id, chat.model, extract_candidate_text(upstream_json))
        return Response(
            content=completion.model_dump_json(),
            status_code=200,
            media_type="application/json",
            headers=ctx.trace_headers(),
        )

    async def forward_transparent(self, request: Request, ctx: RequestContext) -> HandlerResult:
        log = ctx.logger(__name__)
        if ctx.key is None:
            raise RuntimeError("no upstream key selected for request")

        url = f"{self._config.upstream.normalized_base_url()}{self.upstream_path(request.url.path)}"
        params = _query_with_upstream_key(request.query_params.multi_items(), ctx.key.key)
        headers = _copy_allowed_headers(request.headers, FORWARDED_REQUEST_HEADERS)
        body = None
        if request.method not in BODYLESS_METHODS:
            body = await request.body()

        log.info("Forwarding %s %s", request.method, request.url.path)
        client = await self.ensure_client()
        upstream_request = client.build_request(
            request.method,
            url,
            headers=headers,
            content=body,
            params=params,
            timeout=streaming_timeout(self._config.preferences.request_timeout),
        )
        started = time.monotonic()
        try:
            response = await client.send(upstream_request, stream=True)
        except httpx.RequestError as exc:
            log.error("Upstream request failed: %s", type(exc).__name__)
            return upstream_unavailable(f"{type(exc).__name__}: {exc}")

        log.info("Upstream responded %s (%dms)", response.status_code, (time.monotonic() - started) * 1000)
        return self._build_streaming_response(response, ctx)

    @staticmethod
    def _build_streaming_response(origin: httpx.Response, ctx: RequestContext) -> StreamingResponse:
        headers = _copy_allowed_headers(origin.headers, RETURNED_RESPONSE_HEADERS)
        headers.update(ctx.trace_headers())

        async def iterator():
            try:
                async for chunk in origin.aiter_raw():
                    yield chunk
            finally:
                await origin.aclose()

        return StreamingResponse(iterator(), status_code=origin.status_code, headers=headers)
