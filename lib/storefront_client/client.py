from __future__ import annotations

import asyncio
from typing import Any

import httpx

from .config_types import ClientConfig
from .errors import ApiError, NetworkError
from .pipeline import ApiResponse, InboundResult, Interceptors, RequestContext, until_cancelled
from .transport import Transport


class Client:
    """A client handle bound to one base URL.

    Every call runs the outbound hooks, sends the request, then runs the
    inbound hooks. The config is fixed for the handle's lifetime; the hook
    chains on ``interceptors`` may be changed at any time.
    """

    def __init__(self, cfg: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self._cfg = cfg
        self._t = Transport(cfg, transport=transport)
        self.interceptors = Interceptors()

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    @property
    def is_closed(self) -> bool:
        return self._t.is_closed

    async def aclose(self) -> None:
        await self._t.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
            self,
            method: str,
            path: str,
            *,
            params: dict[str, Any] | None = None,
            json_body: Any | None = None,
            headers: dict[str, str] | None = None,
            cancel: asyncio.Event | None = None,
    ) -> ApiResponse:
        ctx = RequestContext(
            method=method.upper(),
            path=path,
            params=dict(params or {}),
            json_body=json_body,
            headers=dict(headers or {}),
            cancel=cancel,
        )
        return await self.dispatch(ctx)

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("POST", path, **kwargs)

    async def dispatch(self, ctx: RequestContext) -> ApiResponse:
        ctx = await self.interceptors.run_outbound(ctx)
        ctx.raise_if_cancelled()

        result: InboundResult
        try:
            result = await self._send(ctx)
        except (ApiError, NetworkError) as exc:
            result = exc
        ctx.raise_if_cancelled()

        result = await self.interceptors.run_inbound(result, ctx)
        if isinstance(result, BaseException):
            raise result
        return result

    async def resend(self, ctx: RequestContext) -> ApiResponse:
        """Re-issue a request through the full pipeline, marked as a retry."""
        return await self.dispatch(ctx.for_retry())

    async def _send(self, ctx: RequestContext) -> ApiResponse:
        return await until_cancelled(self._t.send(ctx), ctx)
