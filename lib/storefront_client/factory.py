from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Mapping

import httpx

from .client import Client
from .config_types import ClientConfig, ClientConfigOverride
from .env import get_config

_CONFIG_FIELDS = frozenset(f.name for f in fields(ClientConfig))

_default_client: Client | None = None


def merge_config(base: ClientConfig, override: ClientConfigOverride | Mapping[str, Any] | None) -> ClientConfig:
    """Fields present in ``override`` win; ``default_headers`` merge key by key."""
    if not override:
        return replace(base, default_headers=dict(base.default_headers))

    unknown = set(override) - _CONFIG_FIELDS
    if unknown:
        raise ValueError(f"unknown client config field(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {k: v for k, v in override.items() if k != "default_headers"}
    headers = dict(base.default_headers)
    headers.update(override.get("default_headers") or {})
    values["default_headers"] = headers
    return replace(base, **values)


def create_client(
        override: ClientConfigOverride | Mapping[str, Any] | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
) -> Client:
    """Build a new client handle with an empty interceptor pipeline. Does no I/O."""
    return Client(merge_config(get_config(), override), transport=transport)


def get_default_client() -> Client:
    global _default_client
    if _default_client is None or _default_client.is_closed:
        _default_client = create_client()
    return _default_client


async def reset_default_client() -> None:
    global _default_client
    client, _default_client = _default_client, None
    if client is not None:
        await client.aclose()
