from __future__ import annotations

import json
from typing import Any


class StorefrontClientError(Exception):
    """Base client error."""

    kind = "error"


class NetworkError(StorefrontClientError):
    """Transport/network layer error: no response was received."""

    kind = "network"


class ApiError(StorefrontClientError):
    kind = "http"

    def __init__(
            self,
            status_code: int,
            message: str,
            details: str | None = None,
            body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        self.body = body


class AuthError(ApiError):
    """Auth-related API error (401/403)."""

    kind = "auth"


class RequestRejected(StorefrontClientError):
    """An outbound interceptor refused to send the request."""

    kind = "rejected"


class RequestCancelled(StorefrontClientError):
    """The caller's cancel signal fired before the call resolved."""

    kind = "cancelled"


def parse_api_error_detail(details: str | None) -> dict | None:
    if not details:
        return None
    try:
        data = json.loads(details)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
