from __future__ import annotations

import json
import random
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from gemgate.app import create_app
from gemgate.config import AppConfig
from gemgate.key_pool import KeyPool

AUTH_KEY = "gateway-secret"
UPSTREAM_KEYS = ("upstream-a", "upstream-b", "upstream-c")


class FixedRandom(random.Random):
    def __init__(self, position: int) -> None:
        super().__init__()
        self.position = position

    def randrange(self, *args, **kwargs) -> int:
        return self.position


class RecordingUpstream:
    """MockTransport handler that records requests and replays a canned reply."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": "hello"}]}}]}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "upstream was not called"
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(auth_key=AUTH_KEY, api_keys=UPSTREAM_KEYS)


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def client(config: AppConfig, upstream: RecordingUpstream):
    app = create_app(
        config,
        pool=KeyPool(config.api_keys, rng=FixedRandom(1)),
        transport=httpx.MockTransport(upstream),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {AUTH_KEY}"}
