from __future__ import annotations

import asyncio
from typing import Any, TypedDict
from urllib.parse import quote

from .client import Client


class Product(TypedDict, total=False):
    id: str
    name: str


class ProductPage(TypedDict, total=False):
    items: list[Product]
    page: int
    limit: int
    total: int


class CatalogService:
    """Read-only product queries. Payloads are returned as the server sent them."""

    def __init__(self, client: Client):
        self.client = client

    async def list_products(self, page: int, limit: int, *, cancel: asyncio.Event | None = None) -> ProductPage:
        resp = await self.client.get("/products", params={"page": page, "limit": limit}, cancel=cancel)
        return _as_page(resp.data)

    async def get_product(self, product_id: str, *, cancel: asyncio.Event | None = None) -> Product:
        resp = await self.client.get(f"/products/{quote(str(product_id), safe='')}", cancel=cancel)
        data = resp.data
        return data if isinstance(data, dict) else {"raw": data}

    async def search_products(self, query: str, *, cancel: asyncio.Event | None = None) -> ProductPage:
        resp = await self.client.get("/products/search", params={"q": query}, cancel=cancel)
        return _as_page(resp.data)


def _as_page(data: Any) -> ProductPage:
    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        return {"items": data}
    return {"raw": data}
