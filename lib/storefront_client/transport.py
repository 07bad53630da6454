from __future__ import annotations

import json
from typing import Any

import httpx

from . import __version__
from .config_types import ClientConfig
from .errors import ApiError, AuthError, NetworkError
from .pipeline import ApiResponse, RequestContext

_NOT_JSON = object()


class Transport:
    def __init__(self, cfg: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self._cfg = cfg
        headers = {"User-Agent": f"storefront-client/{__version__}"}
        headers.update(cfg.default_headers)

        self._client = httpx.AsyncClient(
            base_url=cfg.base_url.rstrip("/"),
            timeout=cfg.timeout_s,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, ctx: RequestContext) -> ApiResponse:
        try:
            r = await self._client.request(
                ctx.method,
                ctx.path,
                params=ctx.params or None,
                json=ctx.json_body,
                headers=ctx.headers or None,
            )
        except httpx.RequestError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        # Try parse body as json for better errors / output
        data: Any = _NOT_JSON
        text = None
        try:
            data = r.json()
        except ValueError:
            text = r.text

        if not 200 <= r.status_code < 300:
            msg = f"{ctx.method} {ctx.path} failed with {r.status_code}"
            details = None

            if isinstance(data, dict) and "detail" in data:
                details = json.dumps(data, ensure_ascii=False)
                msg = str(data.get("detail") or msg)
            elif data is not _NOT_JSON:
                details = json.dumps(data, ensure_ascii=False)
            elif text:
                details = text[:1000]

            body = data if data is not _NOT_JSON else text
            if r.status_code in (401, 403):
                raise AuthError(r.status_code, msg, details, body)
            raise ApiError(r.status_code, msg, details, body)

        return ApiResponse(
            status=r.status_code,
            data=data if data is not _NOT_JSON else r.text,
            headers=dict(r.headers),
        )
