from typing import List, NamedTuple, Optional, Sequence

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

BREADCRUMB_STATE_KEY = "breadcrumbs"


class Breadcrumb(NamedTuple):
    title: str
    href: Optional[str] = None
    is_current_page: bool = False


class BreadcrumbContext:
    """The navigation trail shown in the header. Each page replaces the whole trail."""

    def __init__(self):
        self.breadcrumbs: List[Breadcrumb] = []

    def set_breadcrumbs(self, trail: Sequence[Breadcrumb]) -> None:
        self.breadcrumbs = list(trail)

    def __iter__(self):
        return iter(self.breadcrumbs)

    def __len__(self):
        return len(self.breadcrumbs)


class BreadcrumbProvider:
    """ASGI middleware giving every HTTP request a fresh BreadcrumbContext on request.state."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            scope.setdefault("state", {})[BREADCRUMB_STATE_KEY] = BreadcrumbContext()
        await self.app(scope, receive, send)


def use_breadcrumbs(request: Request) -> BreadcrumbContext:
    ctx = getattr(request.state, BREADCRUMB_STATE_KEY, None)
    if ctx is None:
        raise RuntimeError("use_breadcrumbs must be used within a BreadcrumbProvider")
    return ctx


class NavItem(NamedTuple):
    title: str
    href: str
    enabled: bool = True

    def is_active(self, path: str) -> bool:
        if self.href == "/":
            return path == "/"
        return path == self.href or path.startswith(self.href + "/")


SIDEBAR_ITEMS = [
    NavItem("Dashboard", "/"),
    NavItem("Products", "/products"),
    NavItem("Warehouses", "/warehouses", enabled=False),
    NavItem("Orders", "/orders", enabled=False),
]

DASHBOARD_TRAIL = [Breadcrumb("Dashboard", is_current_page=True)]
PRODUCTS_TRAIL = [Breadcrumb("Dashboard", "/"), Breadcrumb("Products", is_current_page=True)]
