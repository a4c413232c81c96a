from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional


DEFAULT_MODEL_MAP: Mapping[str, str] = MappingProxyType(
    {
        "gpt-4": "gemini-2.5-pro",
        "gpt-4-turbo": "gemini-2.5-pro",
        "gpt-3.5-turbo": "gemini-2.5-flash",
        "gemini-3-pro-preview": "gemini-3-pro-preview",
        "gemini-3-flash-preview": "gemini-3-flash-preview",
        "gemini-2.5-pro": "gemini-2.5-pro",
        "gemini-2.5-flash": "gemini-2.5-flash",
    }
)


class ModelNameMap:
    """Maps caller-facing model names to upstream model names.

    Unknown names pass through unchanged.
    """

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        self._mapping = MappingProxyType(dict(DEFAULT_MODEL_MAP if mapping is None else mapping))

    def translate(self, model: str) -> str:
        return self._mapping.get(model, model)

    def __contains__(self, model: object) -> bool:
        return model in self._mapping
