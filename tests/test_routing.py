from __future__ import annotations

import pytest

from gemgate.routing import Route, normalize_path, route


@pytest.mark.parametrize("path", ["/chat/completions", "/v1/chat/completions", "/v1/v1/chat/completions"])
def test_chat_completion_paths_translate(path):
    assert route(path) is Route.TRANSLATING


@pytest.mark.parametrize(
    "path",
    [
        "/",
        "/models",
        "/v1beta/models/gemini-2.5-pro:generateContent",
        "/v1/chat/completions/extra",
        "/chat/completion",
        "/v1beta/chat/completions",
    ],
)
def test_everything_else_is_transparent(path):
    assert route(path) is Route.TRANSPARENT


def test_normalize_strips_only_a_whole_v1_segment():
    assert normalize_path("/v1/models") == "/models"
    assert normalize_path("/v1") == "/"
    assert normalize_path("/v1beta/models") == "/v1beta/models"
    assert normalize_path("/v1/v1/models") == "/v1/models"
