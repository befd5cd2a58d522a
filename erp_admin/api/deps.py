from pathlib import Path
from typing import Any, Dict, Optional

import requests
from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from erp_admin.adapters.api_client import ApiClient
from erp_admin.adapters.credentials import CookieCredentialStore
from erp_admin.config import settings
from erp_admin.navigation import SIDEBAR_ITEMS, use_breadcrumbs
from erp_admin.repositories.product_repo import ProductRepository
from erp_admin.repositories.query_cache import QueryCache, QueryCacheRegistry
from erp_admin.services.auth_service import AuthService, session_user
from erp_admin.utils.toasts import clear_flashed, read_flashed

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


class LoginRequired(Exception):
    """Raised by protected pages when no access token is present; handled as a redirect to /login."""


def get_http_session() -> requests.Session:
    return requests.Session()


def get_credentials(request: Request) -> CookieCredentialStore:
    # one store per request so staged writes can be applied to the response
    store = getattr(request.state, "credentials", None)
    if store is None:
        store = CookieCredentialStore(request, secure=settings.COOKIE_SECURE)
        request.state.credentials = store
    return store


def get_api_client(
    credentials: CookieCredentialStore = Depends(get_credentials),
    session: requests.Session = Depends(get_http_session),
) -> ApiClient:
    return ApiClient(settings.API_BASE_URL, credentials, session=session, timeout=settings.API_TIMEOUT_SECONDS)


def get_cache_registry(request: Request) -> QueryCacheRegistry:
    return request.app.state.query_caches


def get_query_cache(
    credentials: CookieCredentialStore = Depends(get_credentials),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
) -> QueryCache:
    return registry.for_token(credentials.access_token)


def require_login(credentials: CookieCredentialStore = Depends(get_credentials)) -> CookieCredentialStore:
    if not credentials.access_token:
        raise LoginRequired()
    return credentials


def get_auth_service(
    client: ApiClient = Depends(get_api_client),
    credentials: CookieCredentialStore = Depends(get_credentials),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
) -> AuthService:
    return AuthService(client, credentials, registry)


def get_product_repo(
    client: ApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_query_cache),
) -> ProductRepository:
    return ProductRepository(client, cache, page_size=settings.PRODUCTS_PAGE_SIZE)


def render(
    request: Request,
    template: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
    toasts: Optional[list] = None,
) -> Response:
    """Render a page inside the shell: sidebar, breadcrumb header, current user and toasts."""
    credentials = get_credentials(request)
    user = session_user(credentials)
    ctx = {
        "nav_items": SIDEBAR_ITEMS,
        "breadcrumbs": use_breadcrumbs(request),
        "current_user": user,
        "is_authenticated": bool(credentials.access_token),
        "toasts": read_flashed(request) + list(toasts or []),
    }
    ctx.update(context or {})
    response = templates.TemplateResponse(request, template, ctx, status_code=status_code)
    clear_flashed(request, response)
    credentials.apply(response)
    return response
