"""Authentication session lifecycle.

``SessionService`` owns the status transitions::

    ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED     (login ok)
    AUTHENTICATING -> ANONYMOUS                      (login failed)
    AUTHENTICATED -> REFRESHING -> AUTHENTICATED     (refresh ok)
    AUTHENTICATED -> ANONYMOUS                       (refresh failed, logout)

``login`` hands the new credential back to the caller, who decides where to
keep it. ``logout`` and a failed refresh clear the store; a successful
refresh replaces the stored credential.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from .auth import Credential, CredentialStore, bearer_auth
from .client import Client
from .errors import ApiError, AuthError, RequestCancelled, StorefrontClientError
from .pipeline import InboundResult, RequestContext

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"
REFRESH_PATH = "/auth/refresh"
AUTH_PATHS = frozenset({LOGIN_PATH, LOGOUT_PATH, REFRESH_PATH})


class SessionStatus(enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class LoginResult:
    credential: Credential
    data: dict[str, Any] = field(default_factory=dict)


def parse_login_payload(data: Any, *, what: str = "login") -> LoginResult:
    if isinstance(data, dict):
        token = data.get("token") or data.get("access_token")
        if isinstance(token, str) and token:
            refresh = data.get("refresh_token")
            return LoginResult(
                credential=Credential(
                    access_token=token,
                    refresh_token=refresh if isinstance(refresh, str) and refresh else None,
                ),
                data=data,
            )
    raise ApiError(500, f"{what} returned no token", None, data)


class SessionService:
    def __init__(self, client: Client, store: CredentialStore):
        self.client = client
        self.store = store
        self.status = SessionStatus.AUTHENTICATED if store.get() else SessionStatus.ANONYMOUS
        self._refreshing: asyncio.Task | None = None

    async def login(self, identifier: str, secret: str, *, cancel: asyncio.Event | None = None) -> LoginResult:
        self.status = SessionStatus.AUTHENTICATING
        try:
            resp = await self.client.post(
                LOGIN_PATH,
                json_body={"identifier": identifier, "secret": secret},
                cancel=cancel,
            )
            result = parse_login_payload(resp.data)
        except StorefrontClientError:
            self.status = SessionStatus.ANONYMOUS
            raise
        self.status = SessionStatus.AUTHENTICATED
        return result

    async def logout(self, *, cancel: asyncio.Event | None = None) -> None:
        # The server-side outcome of a failed logout cannot be recovered from
        # here, so the local credential is dropped whatever happens.
        try:
            await self.client.post(LOGOUT_PATH, cancel=cancel)
        except AuthError as exc:
            if exc.status_code != 401:
                raise
            logger.debug("logout: session already closed server-side")
        finally:
            self.store.clear()
            self.status = SessionStatus.ANONYMOUS

    async def refresh_token(self, *, cancel: asyncio.Event | None = None) -> LoginResult:
        previous = self.store.get()
        self.status = SessionStatus.REFRESHING
        try:
            resp = await self.client.post(REFRESH_PATH, cancel=cancel)
            result = parse_login_payload(resp.data, what="refresh")
        except RequestCancelled:
            # not an auth failure: the current credential stays usable
            self.status = SessionStatus.AUTHENTICATED if previous else SessionStatus.ANONYMOUS
            raise
        except StorefrontClientError as exc:
            logger.info("token refresh failed: %s", exc)
            self.store.clear()
            self.status = SessionStatus.ANONYMOUS
            raise
        credential = result.credential
        if credential.refresh_token is None and previous is not None and previous.refresh_token:
            credential = Credential(credential.access_token, previous.refresh_token)
            result = LoginResult(credential=credential, data=result.data)
        self.store.set(credential)
        self.status = SessionStatus.AUTHENTICATED
        return result

    async def refresh_single_flight(self) -> LoginResult:
        """Run ``refresh_token`` at most once at a time; concurrent callers share the outcome."""
        task = self._refreshing
        if task is None:
            task = asyncio.ensure_future(self.refresh_token())
            self._refreshing = task
            task.add_done_callback(self._forget_refresh)
        return await asyncio.shield(task)

    def _forget_refresh(self, task: asyncio.Task) -> None:
        if self._refreshing is task:
            self._refreshing = None


class TokenRefreshHook:
    """Inbound hook: on 401, refresh the credential once and replay the request.

    Requests that were already replayed, and the auth endpoints themselves,
    pass through untouched.
    """

    def __init__(self, session: SessionService):
        self._session = session

    async def __call__(self, result: InboundResult, ctx: RequestContext) -> InboundResult:
        if not isinstance(result, AuthError) or result.status_code != 401:
            return result
        if ctx.retried or ctx.path in AUTH_PATHS:
            return result

        current = self._session.store.get()
        if current is None:
            return result
        if current.access_token == ctx.credential:
            try:
                await self._session.refresh_single_flight()
            except StorefrontClientError:
                return result
        # otherwise another call already swapped the token in; just replay

        ctx.raise_if_cancelled()
        return await self._session.client.resend(ctx)


def attach_session(client: Client, store: CredentialStore) -> SessionService:
    """Register the bearer and refresh hooks on ``client`` and return its session service."""
    session = SessionService(client, store)
    client.interceptors.use_outbound(bearer_auth(store))
    client.interceptors.use_inbound(TokenRefreshHook(session))
    return session
