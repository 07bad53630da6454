__version__ = "0.1.0"

from .auth import Credential, CredentialStore, MemoryCredentialStore, bearer_auth
from .catalog import CatalogService
from .client import Client
from .config_types import ClientConfig
from .errors import (
    ApiError,
    AuthError,
    NetworkError,
    RequestCancelled,
    RequestRejected,
    StorefrontClientError,
)
from .factory import create_client, get_default_client
from .pipeline import ApiResponse, RequestContext
from .session import LoginResult, SessionService, SessionStatus, attach_session

__all__ = [
    "ApiError",
    "ApiResponse",
    "AuthError",
    "CatalogService",
    "Client",
    "ClientConfig",
    "Credential",
    "CredentialStore",
    "LoginResult",
    "MemoryCredentialStore",
    "NetworkError",
    "RequestCancelled",
    "RequestContext",
    "RequestRejected",
    "SessionService",
    "SessionStatus",
    "StorefrontClientError",
    "attach_session",
    "bearer_auth",
    "create_client",
    "get_default_client",
]
