from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import typer
from rich.table import Table
from storefront_client import ApiError, NetworkError

from .. import console
from ..config import AppConfig, load_config, save_config
from ..http import Services, credential_changed, make_client, store_credential

app = typer.Typer(help="Browse the product catalog.")


def _call(cfg: AppConfig, base_url: str | None, fn: Callable[[Services], Awaitable[Any]], what: str) -> Any:
    async def _run():
        services = make_client(cfg, base_url_override=base_url)
        try:
            return await fn(services)
        finally:
            if credential_changed(cfg, services):
                # the refresh hook swapped or dropped the token mid-call
                store_credential(cfg, services.store.get())
                save_config(cfg)
            await services.aclose()

    try:
        return asyncio.run(_run())
    except ApiError as e:
        if e.status_code in (401, 403):
            console.err("Unauthorized. Run: storefront auth login")
            raise typer.Exit(code=2)
        if e.status_code == 404:
            console.err(f"Not found: {e}")
            raise typer.Exit(code=2)
        console.err(f"Failed to {what}: {e}")
        raise typer.Exit(code=2)
    except NetworkError as e:
        console.err(f"Failed to {what}: {e}")
        raise typer.Exit(code=2)


def _print_page(data: dict, *, title: str) -> None:
    items = data.get("items") if isinstance(data, dict) else []
    total = data.get("total") if isinstance(data, dict) else None
    if total is not None:
        console.info(f"total={total}")

    table = Table(title=title)
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("price")

    for p in items or []:
        product_id = str(p.get("id", "-"))
        name = str(p.get("name") or "-")
        price = p.get("price")
        table.add_row(product_id, name, "-" if price is None else str(price))

    console.console.print(table)


@app.command("list")
def list_products(
        page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
        limit: int = typer.Option(20, "--limit", min=1, help="Products per page."),
        base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    cfg = load_config()
    data = _call(cfg, base_url, lambda s: s.catalog.list_products(page, limit), "list products")

    if json_out:
        console.print_json(data)
        return
    console.info(f"page={page} limit={limit}")
    _print_page(data, title="Products")


@app.command("get")
def get_product(
        product_id: str = typer.Argument(..., help="Product ID."),
        base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    cfg = load_config()
    product = _call(cfg, base_url, lambda s: s.catalog.get_product(product_id), "fetch product")

    if json_out:
        console.print_json(product)
        return
    console.ok("Product:")
    for key, value in product.items():
        console.console.print(f"  {key}: {value}")


@app.command("search")
def search_products(
        query: str = typer.Argument(..., help="Search text."),
        base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    cfg = load_config()
    data = _call(cfg, base_url, lambda s: s.catalog.search_products(query), "search products")

    if json_out:
        console.print_json(data)
        return
    _print_page(data, title=f"Search: {query}")
