from __future__ import annotations

from dataclasses import dataclass

import httpx
from storefront_client import (
    CatalogService,
    Client,
    Credential,
    MemoryCredentialStore,
    SessionService,
    attach_session,
    create_client,
)
from storefront_client.pipeline import log_inbound, log_outbound

from .config import AppConfig, resolve_base_url


@dataclass
class Services:
    client: Client
    store: MemoryCredentialStore
    session: SessionService
    catalog: CatalogService

    async def aclose(self) -> None:
        await self.client.aclose()


def make_client(
        cfg: AppConfig,
        *,
        base_url_override: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    client = create_client(
        {
            "base_url": resolve_base_url(cfg, base_url_override),
            "timeout_s": cfg.timeout_s,
            "default_headers": dict(cfg.headers),
        },
        transport=transport,
    )
    store = MemoryCredentialStore()
    if cfg.auth.token:
        store.set(Credential(cfg.auth.token, cfg.auth.refresh_token or None))

    client.interceptors.use_outbound(log_outbound)
    session = attach_session(client, store)
    client.interceptors.use_inbound(log_inbound)
    return Services(client=client, store=store, session=session, catalog=CatalogService(client))


def store_credential(cfg: AppConfig, credential: Credential | None) -> None:
    """Mirror the session's credential into the CLI config (caller saves it)."""
    if credential is None:
        cfg.auth.token = ""
        cfg.auth.refresh_token = ""
        return
    cfg.auth.token = credential.access_token
    cfg.auth.refresh_token = credential.refresh_token or ""
    cfg.auth.token_type = "bearer"


def credential_changed(cfg: AppConfig, services: Services) -> bool:
    current = services.store.get()
    if current is None:
        return bool(cfg.auth.token)
    return current.access_token != cfg.auth.token or (current.refresh_token or "") != cfg.auth.refresh_token
