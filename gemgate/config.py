from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

import yaml

from .models import DEFAULT_MODEL_MAP, ModelNameMap


DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"

AUTH_KEY_ENV = "key"
API_KEYS_ENV = "apikey"


class ConfigError(ValueError):
    """Raised when the configuration file is invalid."""


@dataclass(frozen=True)
class UpstreamConfig:
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION

    def normalized_base_url(self) -> str:
        return self.base_url.rstrip("/")

    def model_operation_url(self, model: str, operation: str) -> str:
        return f"{self.normalized_base_url()}/{self.api_version}/models/{model}:{operation}"


@dataclass(frozen=True)
class PreferencesConfig:
    request_timeout: float = 120.0
    proxy: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    auth_key: Optional[str] = None
    api_keys: Tuple[str, ...] = ()
    upstream: UpstreamConfig = UpstreamConfig()
    model_map: ModelNameMap = field(default_factory=ModelNameMap)
    preferences: PreferencesConfig = PreferencesConfig()

    @property
    def is_configured(self) -> bool:
        return bool(self.auth_key) and bool(self.api_keys)

    def describe(self) -> str:
        return "auth key set: %s, upstream keys: %d, upstream: %s/%s" % (
            "yes" if self.auth_key else "no",
            len(self.api_keys),
            self.upstream.normalized_base_url(),
            self.upstream.api_version,
        )


def parse_api_keys(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        raise ConfigError("api_keys must be a comma-separated string or a list of strings")
    keys = []
    for item in items:
        if not isinstance(item, str):
            raise ConfigError("api_keys entries must be strings")
        item = item.strip()
        if item:
            keys.append(item)
    return tuple(keys)


def _load_yaml(path: pathlib.Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Top-level config structure must be a mapping")
    return data


def _optional_str(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value.strip() or None


def build_config(raw: dict, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build an AppConfig from a parsed mapping, overlaid by the environment."""
    environ = os.environ if environ is None else environ

    auth_key = _optional_str(raw, "auth_key")
    api_keys = parse_api_keys(raw.get("api_keys"))

    env_auth_key = environ.get(AUTH_KEY_ENV)
    if env_auth_key and env_auth_key.strip():
        auth_key = env_auth_key.strip()
    env_api_keys = parse_api_keys(environ.get(API_KEYS_ENV))
    if env_api_keys:
        api_keys = env_api_keys

    upstream_raw = raw.get("upstream") or {}
    if not isinstance(upstream_raw, dict):
        raise ConfigError("'upstream' section must be a mapping if provided")
    base_url = _optional_str(upstream_raw, "base_url") or DEFAULT_BASE_URL
    api_version = (_optional_str(upstream_raw, "api_version") or DEFAULT_API_VERSION).strip("/")

    model_map_raw = raw.get("model_map") or {}
    if not isinstance(model_map_raw, dict):
        raise ConfigError("'model_map' section must be a mapping if provided")
    overrides = {}
    for caller_name, upstream_name in model_map_raw.items():
        if not isinstance(caller_name, str) or not isinstance(upstream_name, str) or not upstream_name:
            raise ConfigError(f"model_map entry for {caller_name!r} must map a name to a non-empty string")
        overrides[caller_name] = upstream_name
    model_map = ModelNameMap({**DEFAULT_MODEL_MAP, **overrides})

    preferences_raw = raw.get("preferences") or {}
    if not isinstance(preferences_raw, dict):
        raise ConfigError("'preferences' section must be a mapping if provided")
    try:
        request_timeout = float(preferences_raw.get("request_timeout", 120))
    except (TypeError, ValueError) as exc:
        raise ConfigError("request_timeout must be numeric") from exc
    if request_timeout <= 0:
        raise ConfigError("request_timeout must be greater than zero")

    return AppConfig(
        auth_key=auth_key,
        api_keys=api_keys,
        upstream=UpstreamConfig(base_url=base_url, api_version=api_version),
        model_map=model_map,
        preferences=PreferencesConfig(
            request_timeout=request_timeout,
            proxy=_optional_str(preferences_raw, "proxy"),
        ),
    )


def load_config(
    path: str | pathlib.Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    raw = _load_yaml(pathlib.Path(path)) if path is not None else {}
    return build_config(raw, environ)
