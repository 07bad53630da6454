from __future__ import annotations

import asyncio

import typer
from storefront_client import ApiError, NetworkError

from .. import console
from ..config import load_config, save_config
from ..http import make_client, store_credential

app = typer.Typer(help="Auth commands.")


@app.command("login")
def login(
    identifier: str = typer.Option(..., "--identifier", prompt=True, help="Account identifier (username or email)."),
    secret: str = typer.Option(..., "--secret", prompt=True, hide_input=True, help="Account secret."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    cfg = load_config()

    async def _run():
        services = make_client(cfg, base_url_override=base_url)
        try:
            return await services.session.login(identifier, secret)
        finally:
            await services.aclose()

    try:
        result = asyncio.run(_run())
    except (ApiError, NetworkError) as e:
        console.err(f"Login failed: {e}")
        raise typer.Exit(code=2)

    store_credential(cfg, result.credential)
    save_path = save_config(cfg)
    console.ok(f"Login successful. Token saved to {save_path}.")


@app.command("logout", help="End the session and clear the stored token.")
def logout(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    cfg = load_config()
    if not cfg.auth.token:
        console.info("Not logged in.")
        return

    async def _run():
        services = make_client(cfg, base_url_override=base_url)
        try:
            await services.session.logout()
        finally:
            await services.aclose()

    failure: Exception | None = None
    try:
        asyncio.run(_run())
    except (ApiError, NetworkError) as e:
        failure = e

    store_credential(cfg, None)
    save_path = save_config(cfg)
    if failure is not None:
        console.warn(f"Server logout failed ({failure}); token cleared locally anyway.")
    console.ok(f"Token cleared from {save_path}.")


@app.command("refresh", help="Exchange the stored token for a fresh one.")
def refresh(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    cfg = load_config()
    if not cfg.auth.token:
        console.err("Not logged in. Run: storefront auth login")
        raise typer.Exit(code=2)

    async def _run():
        services = make_client(cfg, base_url_override=base_url)
        try:
            return await services.session.refresh_token()
        finally:
            await services.aclose()

    try:
        result = asyncio.run(_run())
    except (ApiError, NetworkError) as e:
        store_credential(cfg, None)
        save_config(cfg)
        console.err(f"Token refresh failed: {e}. Log in again.")
        raise typer.Exit(code=2)

    store_credential(cfg, result.credential)
    save_path = save_config(cfg)
    console.ok(f"Token refreshed and saved to {save_path}.")
