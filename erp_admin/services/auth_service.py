from typing import Optional

from erp_admin.adapters.api_client import ApiClient
from erp_admin.adapters.credentials import CredentialStore
from erp_admin.repositories.query_cache import QueryCacheRegistry
from erp_admin.schemas.auth_schema import LoginIn, LoginResponse, SessionUser
from erp_admin.utils.log import get_logger

log = get_logger("auth")


class AuthServiceException(Exception):
    pass


class AuthService:
    def __init__(self, client: ApiClient, credentials: CredentialStore, caches: Optional[QueryCacheRegistry] = None):
        self.client = client
        self.credentials = credentials
        self.caches = caches

    def login(self, email: str, password: str) -> SessionUser:
        """
        Validate locally, exchange the credentials for a token pair, and persist
        tokens + user in the credential store. Nothing is stored on failure.
        Raises pydantic.ValidationError before any network call, ApiError for
        backend failures, AuthServiceException when the backend answers success=false.
        """
        creds = LoginIn(email=email, password=password)
        body = self.client.post("/auth/login", creds.to_wire())
        resp = LoginResponse.model_validate(body or {"success": False})
        if not resp.success or resp.data is None:
            log.info(f"login rejected for {creds.email}")
            raise AuthServiceException(resp.message or "Login failed")
        tokens = resp.data.tokens
        self.credentials.save(
            tokens.access_token,
            tokens.refresh_token,
            resp.data.user.model_dump(by_alias=True, mode="json"),
        )
        log.info(f"login ok for {creds.email}")
        return resp.data.user

    def logout(self) -> None:
        if self.caches is not None:
            self.caches.drop(self.credentials.access_token)
        self.credentials.clear()

    def current_user(self) -> Optional[SessionUser]:
        return session_user(self.credentials)

    def is_authenticated(self) -> bool:
        return bool(self.credentials.access_token)


def session_user(credentials: CredentialStore) -> Optional[SessionUser]:
    """The user profile cached at login, or None when absent or unreadable."""
    raw = credentials.user
    if not raw:
        return None
    try:
        return SessionUser.model_validate(raw)
    except ValueError:
        return None
