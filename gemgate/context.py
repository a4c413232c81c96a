from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .key_pool import KeySelection


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class RequestContext:
    """Per-request trace state. Used for logs and response headers only."""

    request_id: str = field(default_factory=new_request_id)
    key: Optional[KeySelection] = None

    def logger(self, name: str) -> logging.LoggerAdapter:
        return RequestLogAdapter(logging.getLogger(name), {"request_id": self.request_id})

    def trace_headers(self) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": "*",
            "X-Request-ID": self.request_id,
        }
        if self.key is not None:
            headers["X-API-Key-Used"] = self.key.marker
        return headers


class RequestLogAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {msg}", kwargs
