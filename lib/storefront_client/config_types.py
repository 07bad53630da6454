from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict

import httpx


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    timeout_s: float = 15.0
    default_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s!r}")
        try:
            url = httpx.URL(self.base_url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid base_url {self.base_url!r}: {exc}") from exc
        if not url.is_absolute_url or url.scheme not in ("http", "https"):
            raise ValueError(f"base_url must be an absolute http(s) URL, got {self.base_url!r}")


class ClientConfigOverride(TypedDict, total=False):
    base_url: str
    timeout_s: float
    default_headers: dict[str, str]
