"""Request/response interceptor chains.

Outbound hooks take a ``RequestContext`` and return it (possibly modified).
Returning a ``StorefrontClientError`` instance, or raising one, rejects the
request: the remaining outbound hooks and the network call are skipped.

Inbound hooks take ``(result, ctx)`` where ``result`` is an ``ApiResponse`` or
the error the call produced, and return the value handed to the next hook.
A hook that raises replaces the value with the raised error.

Both kinds of hook may be plain functions or coroutines. When the request
has a cancel signal, a hook still suspended when it fires is cancelled and the
chain stops with ``RequestCancelled``; remaining hooks do not run.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Union

from .errors import RequestCancelled, RequestRejected, StorefrontClientError

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    method: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    json_body: Any | None = None
    headers: dict[str, str] = field(default_factory=dict)
    cancel: asyncio.Event | None = None
    # access token attached by the outbound chain, if any
    credential: str | None = None
    retried: bool = False

    def for_retry(self) -> "RequestContext":
        return replace(
            self,
            params=dict(self.params),
            headers={k: v for k, v in self.headers.items() if k.lower() != "authorization"},
            credential=None,
            retried=True,
        )

    def raise_if_cancelled(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise RequestCancelled(f"{self.method} {self.path} cancelled")


@dataclass(frozen=True)
class ApiResponse:
    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


InboundResult = Union[ApiResponse, StorefrontClientError]
OutboundHook = Callable[[RequestContext], Union[RequestContext, StorefrontClientError, Awaitable[Any]]]
InboundHook = Callable[[InboundResult, RequestContext], Union[InboundResult, Awaitable[Any]]]


async def until_cancelled(aw: Awaitable[Any], ctx: RequestContext) -> Any:
    """Await ``aw`` unless ``ctx.cancel`` fires first.

    On cancellation the pending work is cancelled and awaited before
    ``RequestCancelled`` is raised. A signal that is set by the time ``aw``
    finishes also wins over its result.
    """
    if ctx.cancel is None:
        return await aw

    work = asyncio.ensure_future(aw)
    cancelled = asyncio.ensure_future(ctx.cancel.wait())
    try:
        await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        cancelled.cancel()

    if work.done() and not ctx.cancel.is_set():
        return work.result()

    if not work.done():
        work.cancel()
        await asyncio.wait({work})
    if not work.cancelled():
        # outcome discarded, the cancel signal won
        work.exception()
    raise RequestCancelled(f"{ctx.method} {ctx.path} cancelled")


async def _resolve(value: Any, ctx: RequestContext) -> Any:
    if inspect.isawaitable(value):
        return await until_cancelled(value, ctx)
    return value


class Interceptors:
    def __init__(self) -> None:
        self.outbound: list[OutboundHook] = []
        self.inbound: list[InboundHook] = []

    def use_outbound(self, hook: OutboundHook) -> OutboundHook:
        self.outbound.append(hook)
        return hook

    def use_inbound(self, hook: InboundHook) -> InboundHook:
        self.inbound.append(hook)
        return hook

    def eject(self, hook: Callable[..., Any]) -> bool:
        for chain in (self.outbound, self.inbound):
            if hook in chain:
                chain.remove(hook)
                return True
        return False

    async def run_outbound(self, ctx: RequestContext) -> RequestContext:
        for hook in list(self.outbound):
            ctx.raise_if_cancelled()
            result = await _resolve(hook(ctx), ctx)
            if isinstance(result, StorefrontClientError):
                raise result
            if not isinstance(result, RequestContext):
                raise RequestRejected(
                    f"outbound hook {_hook_name(hook)} returned {type(result).__name__}, expected RequestContext"
                )
            ctx = result
        return ctx

    async def run_inbound(self, result: InboundResult, ctx: RequestContext) -> InboundResult:
        for hook in list(self.inbound):
            ctx.raise_if_cancelled()
            try:
                result = await _resolve(hook(result, ctx), ctx)
            except RequestCancelled:
                raise
            except StorefrontClientError as exc:
                result = exc
        return result


def _hook_name(hook: Callable[..., Any]) -> str:
    return getattr(hook, "__name__", type(hook).__name__)


def log_outbound(ctx: RequestContext) -> RequestContext:
    logger.debug("-> %s %s params=%s", ctx.method, ctx.path, ctx.params or None)
    return ctx


def log_inbound(result: InboundResult, ctx: RequestContext) -> InboundResult:
    if isinstance(result, ApiResponse):
        logger.debug("<- %s %s %s", ctx.method, ctx.path, result.status)
    else:
        logger.debug("<- %s %s failed (%s): %s", ctx.method, ctx.path, result.kind, result)
    return result
