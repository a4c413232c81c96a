from __future__ import annotations

import enum
import re


CHAT_COMPLETIONS_PATH = "/chat/completions"

_VERSION_PREFIX = re.compile(r"^/v1(?=/|$)")


class Route(str, enum.Enum):
    TRANSLATING = "translating"
    TRANSPARENT = "transparent"


def normalize_path(path: str) -> str:
    """Strip a single leading ``/v1`` segment."""
    if not path.startswith("/"):
        path = f"/{path}"
    return _VERSION_PREFIX.sub("", path, count=1) or "/"


def route(path: str) -> Route:
    normalized = normalize_path(path)
    if normalized in (CHAT_COMPLETIONS_PATH, f"/v1{CHAT_COMPLETIONS_PATH}"):
        return Route.TRANSLATING
    return Route.TRANSPARENT
