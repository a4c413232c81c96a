"""Gateway exposing a Gemini-style upstream through chat-completion and native dialects."""

__all__ = [
    "create_app",
]

from .app import create_app
