from __future__ import annotations

from .config_types import ClientConfig

API_BASE_URL = "https://api.example.com"
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_HEADERS = {"Content-Type": "application/json"}


def get_config() -> ClientConfig:
    """Default client configuration. Pure: every call returns an equal, fresh value."""
    return ClientConfig(
        base_url=API_BASE_URL,
        timeout_s=DEFAULT_TIMEOUT_S,
        default_headers=dict(DEFAULT_HEADERS),
    )
