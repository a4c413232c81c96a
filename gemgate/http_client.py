from __future__ import annotations

from typing import Optional

import httpx


def create_async_client(
    timeout: float,
    proxy: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient compatible with both old and new proxy parameters."""
    kwargs = {"timeout": timeout}
    if transport is not None:
        kwargs["transport"] = transport
    if not proxy:
        return httpx.AsyncClient(**kwargs)

    try:
        return httpx.AsyncClient(proxy=proxy, **kwargs)
    except TypeError:
        try:
            return httpx.AsyncClient(proxies=proxy, **kwargs)
        except TypeError as exc:
            raise TypeError(
                "Failed to initialize httpx.AsyncClient with either 'proxy' or 'proxies' parameter"
            ) from exc


def bounded_timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds)


def streaming_timeout(seconds: float) -> httpx.Timeout:
    # Reads stay unbounded so long event streams are not cut off.
    return httpx.Timeout(connect=seconds, read=None, write=seconds, pool=seconds)


__all__ = ["bounded_timeout", "create_async_client", "streaming_timeout"]
