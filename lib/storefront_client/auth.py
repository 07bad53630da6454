from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .pipeline import RequestContext


@dataclass(frozen=True)
class Credential:
    access_token: str
    refresh_token: str | None = None

    def __repr__(self) -> str:
        return "Credential(access_token='***', refresh_token=%s)" % ("'***'" if self.refresh_token else None)


class CredentialStore(Protocol):
    def get(self) -> Credential | None: ...

    def set(self, credential: Credential) -> None: ...

    def clear(self) -> None: ...


class MemoryCredentialStore:
    def __init__(self, credential: Credential | None = None):
        self._credential = credential

    def get(self) -> Credential | None:
        return self._credential

    def set(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


def bearer_auth(store: CredentialStore):
    """Outbound hook attaching ``Authorization: Bearer <token>`` when the store holds a credential."""

    def attach_bearer_token(ctx: RequestContext) -> RequestContext:
        credential = store.get()
        if credential is None or not credential.access_token:
            return ctx
        ctx.headers["Authorization"] = f"Bearer {credential.access_token}"
        ctx.credential = credential.access_token
        return ctx

    return attach_bearer_token
