from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w
from platformdirs import user_config_dir
from storefront_client.env import API_BASE_URL, DEFAULT_TIMEOUT_S

from . import console

APP_NAME = "storefront"
CONFIG_FILENAME = "config.toml"
ENV_API_BASE_URL = "STOREFRONT_API_BASE_URL"

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0"})

_scheme_warnings: set[str] = set()


@dataclass
class AuthConfig:
    token: str = ""
    refresh_token: str = ""
    token_type: str = "bearer"


@dataclass
class AppConfig:
    base_url: str
    auth: AuthConfig
    timeout_s: float = DEFAULT_TIMEOUT_S
    headers: dict[str, str] = field(default_factory=dict)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig(
        base_url=API_BASE_URL,
        auth=AuthConfig(token="", refresh_token="", token_type="bearer"),
        timeout_s=DEFAULT_TIMEOUT_S,
        headers={},
    )


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    """Strip trailing slashes and add a scheme when the user left it out.

    Loopback hosts get ``http://``; anything else gets ``https://``.
    """
    value = (raw or "").strip().rstrip("/")
    if not value or "://" in value:
        return value

    host = value.partition("/")[0].partition(":")[0].lower()
    scheme = "http" if host in LOOPBACK_HOSTS else "https"
    normalized = f"{scheme}://{value}"
    if warn and normalized not in _scheme_warnings and console.console.is_terminal:
        _scheme_warnings.add(normalized)
        console.warn(f"base_url missing scheme, assuming {normalized}")
    return normalized


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return _prune_empty(
        {
            "base_url": cfg.base_url,
            "timeout_s": cfg.timeout_s,
            "headers": dict(cfg.headers),
            "auth": {
                "token": cfg.auth.token,
                "refresh_token": cfg.auth.refresh_token,
                "token_type": cfg.auth.token_type,
            },
        }
    )


def _prune_empty(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_empty(v) for k, v in value.items() if v not in (None, "")}
    return value


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    base_url = normalize_base_url(str(data.get("base_url") or ""), warn=True)
    if base_url:
        cfg.base_url = base_url

    timeout_raw = data.get("timeout_s")
    if timeout_raw is not None:
        try:
            timeout_s = float(timeout_raw)
        except (TypeError, ValueError):
            timeout_s = 0.0
        if timeout_s > 0:
            cfg.timeout_s = timeout_s
        else:
            console.warn(f"Ignoring invalid timeout_s={timeout_raw!r} in config.")

    headers_raw = data.get("headers") or {}
    if isinstance(headers_raw, dict):
        cfg.headers = {str(k): str(v) for k, v in headers_raw.items() if v is not None}

    auth_raw = data.get("auth") or {}
    if isinstance(auth_raw, dict):
        cfg.auth = AuthConfig(
            token=str(auth_raw.get("token") or ""),
            refresh_token=str(auth_raw.get("refresh_token") or ""),
            token_type=str(auth_raw.get("token_type") or "bearer"),
        )
    return cfg


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return default_config()
    except tomllib.TOMLDecodeError as exc:
        console.warn(f"Ignoring unreadable config {path}: {exc}")
        return default_config()
    return from_toml(data)


def resolve_base_url(cfg: AppConfig, override: str | None = None) -> str:
    if override:
        return normalize_base_url(override, warn=True)
    env_value = os.getenv(ENV_API_BASE_URL, "").strip()
    if env_value:
        return normalize_base_url(env_value, warn=True)
    return normalize_base_url(cfg.base_url) or API_BASE_URL


def save_config(cfg: AppConfig) -> str:
    path = Path(config_path())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomli_w.dumps(to_toml(cfg)), encoding="utf-8")
    # the file holds the bearer token
    path.chmod(0o600)
    return str(path)
