from __future__ import annotations

import asyncio

import httpx
import pytest

from storefront_client import ApiError, ApiResponse, RequestCancelled, RequestRejected


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"path": request.url.path})


async def test_outbound_hooks_run_in_registration_order(make_client) -> None:
    client, recorder = make_client(_ok)
    order: list[str] = []

    def first(ctx):
        order.append("first")
        ctx.headers["X-Step"] = "1"
        return ctx

    def second(ctx):
        order.append("second")
        ctx.headers["X-Step"] += ",2"
        return ctx

    client.interceptors.use_outbound(first)
    client.interceptors.use_outbound(second)
    await client.get("/products")

    assert order == ["first", "second"]
    assert recorder.requests[0].headers["x-step"] == "1,2"


async def test_outbound_rejection_short_circuits(make_client) -> None:
    client, recorder = make_client(_ok)
    order: list[str] = []
    inbound_seen: list[object] = []

    def allow(ctx):
        order.append("allow")
        return ctx

    def deny(ctx):
        order.append("deny")
        return RequestRejected("offline mode")

    def never(ctx):
        order.append("never")
        return ctx

    for hook in (allow, deny, never):
        client.interceptors.use_outbound(hook)
    client.interceptors.use_inbound(lambda result, ctx: inbound_seen.append(result) or result)

    with pytest.raises(RequestRejected, match="offline mode"):
        await client.get("/products")

    assert order == ["allow", "deny"]
    assert recorder.requests == []
    assert inbound_seen == []


async def test_outbound_hook_raising_rejects(make_client) -> None:
    client, recorder = make_client(_ok)

    def deny(ctx):
        raise RequestRejected("no")

    client.interceptors.use_outbound(deny)
    with pytest.raises(RequestRejected):
        await client.get("/products")
    assert recorder.requests == []


async def test_outbound_hook_must_return_context(make_client) -> None:
    client, recorder = make_client(_ok)
    client.interceptors.use_outbound(lambda ctx: None)

    with pytest.raises(RequestRejected, match="expected RequestContext"):
        await client.get("/products")
    assert recorder.requests == []


async def test_async_hooks_are_awaited(make_client) -> None:
    client, recorder = make_client(_ok)

    async def slow_outbound(ctx):
        await asyncio.sleep(0)
        ctx.headers["X-Async"] = "yes"
        return ctx

    async def slow_inbound(result, ctx):
        await asyncio.sleep(0)
        return ApiResponse(status=result.status, data={**result.data, "seen": True})

    client.interceptors.use_outbound(slow_outbound)
    client.interceptors.use_inbound(slow_inbound)
    resp = await client.get("/products")

    assert recorder.requests[0].headers["x-async"] == "yes"
    assert resp.data == {"path": "/products", "seen": True}


async def test_inbound_hooks_pass_through_by_default(make_client) -> None:
    client, _ = make_client(lambda request: httpx.Response(404, json={"detail": "missing"}))
    order: list[str] = []

    def a(result, ctx):
        order.append("a")
        return result

    def b(result, ctx):
        order.append("b")
        return result

    client.interceptors.use_inbound(a)
    client.interceptors.use_inbound(b)
    with pytest.raises(ApiError) as exc_info:
        await client.get("/products/x")

    assert order == ["a", "b"]
    assert exc_info.value.status_code == 404


async def test_inbound_hook_can_promote_failure(make_client) -> None:
    client, _ = make_client(lambda request: httpx.Response(404, json={"detail": "missing"}))

    def fallback(result, ctx):
        if isinstance(result, ApiError) and result.status_code == 404:
            return ApiResponse(status=200, data={"items": []})
        return result

    client.interceptors.use_inbound(fallback)
    resp = await client.get("/products")
    assert resp.data == {"items": []}


async def test_raising_inbound_hook_supersedes_value(make_client) -> None:
    client, _ = make_client(_ok)
    received: list[object] = []

    def explode(result, ctx):
        raise ApiError(418, "teapot")

    def observe(result, ctx):
        received.append(result)
        return result

    client.interceptors.use_inbound(explode)
    client.interceptors.use_inbound(observe)
    with pytest.raises(ApiError) as exc_info:
        await client.get("/products")

    assert exc_info.value.status_code == 418
    assert received == [exc_info.value]


async def test_programming_errors_in_hooks_propagate(make_client) -> None:
    client, _ = make_client(_ok)

    def broken(result, ctx):
        raise KeyError("oops")

    client.interceptors.use_inbound(broken)
    with pytest.raises(KeyError):
        await client.get("/products")


async def test_eject_removes_hook(make_client) -> None:
    client, recorder = make_client(_ok)

    def tag(ctx):
        ctx.headers["X-Tag"] = "1"
        return ctx

    client.interceptors.use_outbound(tag)
    assert client.interceptors.eject(tag) is True
    assert client.interceptors.eject(tag) is False
    await client.get("/products")
    assert "x-tag" not in recorder.requests[0].headers


async def test_cancel_before_dispatch_sends_nothing(make_client) -> None:
    client, recorder = make_client(_ok)
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(RequestCancelled):
        await client.get("/products", cancel=cancel)
    assert recorder.requests == []


async def test_cancel_in_flight_skips_inbound_hooks(make_client) -> None:
    started = asyncio.Event()

    async def stall(request):
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json={})

    client, _ = make_client(stall)
    inbound_seen: list[object] = []
    client.interceptors.use_inbound(lambda result, ctx: inbound_seen.append(result) or result)

    cancel = asyncio.Event()
    task = asyncio.ensure_future(client.get("/products", cancel=cancel))
    await started.wait()
    cancel.set()

    with pytest.raises(RequestCancelled):
        await asyncio.wait_for(task, timeout=1)
    assert inbound_seen == []


async def test_unset_cancel_signal_does_not_interfere(make_client) -> None:
    client, _ = make_client(_ok)
    resp = await client.get("/products", cancel=asyncio.Event())
    assert resp.status == 200
    assert resp.data == {"path": "/products"}


async def test_cancel_in_flight_cancels_the_http_call(make_client) -> None:
    started = asyncio.Event()
    interrupted = asyncio.Event()

    async def stall(request):
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            interrupted.set()
            raise
        return httpx.Response(200, json={})

    client, _ = make_client(stall)
    cancel = asyncio.Event()
    task = asyncio.ensure_future(client.get("/products", cancel=cancel))
    await started.wait()
    cancel.set()

    with pytest.raises(RequestCancelled):
        await asyncio.wait_for(task, timeout=1)
    # the HTTP call was torn down before the error surfaced
    assert interrupted.is_set()


async def test_cancel_after_response_skips_inbound_hooks(make_client) -> None:
    cancel = asyncio.Event()

    def respond_then_cancel(request):
        cancel.set()
        return httpx.Response(200, json={"path": request.url.path})

    client, recorder = make_client(respond_then_cancel)
    inbound_seen: list[object] = []
    client.interceptors.use_inbound(lambda result, ctx: inbound_seen.append(result) or result)

    with pytest.raises(RequestCancelled):
        await client.get("/products", cancel=cancel)
    assert recorder.paths() == ["/products"]
    assert inbound_seen == []


async def test_cancel_interrupts_suspended_outbound_hook(make_client) -> None:
    client, recorder = make_client(_ok)
    entered = asyncio.Event()
    interrupted = asyncio.Event()

    async def wait_for_quota(ctx):
        entered.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            interrupted.set()
            raise
        return ctx

    client.interceptors.use_outbound(wait_for_quota)
    cancel = asyncio.Event()
    task = asyncio.ensure_future(client.get("/products", cancel=cancel))
    await entered.wait()
    cancel.set()

    with pytest.raises(RequestCancelled):
        await asyncio.wait_for(task, timeout=1)
    assert interrupted.is_set()
    assert recorder.requests == []


async def test_cancel_interrupts_suspended_inbound_hook(make_client) -> None:
    client, _ = make_client(_ok)
    entered = asyncio.Event()
    later: list[object] = []

    async def slow(result, ctx):
        entered.set()
        await asyncio.sleep(10)
        return result

    client.interceptors.use_inbound(slow)
    client.interceptors.use_inbound(lambda result, ctx: later.append(result) or result)
    cancel = asyncio.Event()
    task = asyncio.ensure_future(client.get("/products", cancel=cancel))
    await entered.wait()
    cancel.set()

    with pytest.raises(RequestCancelled):
        await asyncio.wait_for(task, timeout=1)
    assert later == []
