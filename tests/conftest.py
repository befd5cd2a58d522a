import json
from html.parser import HTMLParser
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

import pytest
import requests
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter

from erp_admin.api.deps import get_http_session
from erp_admin.config import settings
from erp_admin.main import app
from erp_admin.repositories.query_cache import QueryCacheRegistry

BASE = settings.API_BASE_URL
BASE_PATH = urlsplit(BASE).path.rstrip("/")

ADMIN_EMAIL = "admin@warehouse.com"
ADMIN_PASSWORD = "admin123"


class Call(NamedTuple):
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    json: Any


Reply = Union[Tuple[int, Any], Callable[[Call], Tuple[int, Any]]]


class FakeBackend(BaseAdapter):
    """
    Stands in for the ERP backend at the transport level. Routes map
    (method, path) to (status, body); body None means an empty response,
    bytes are sent as-is, anything else is JSON encoded.
    """

    def __init__(self):
        super().__init__()
        self.routes: Dict[Tuple[str, str], Reply] = {}
        self.calls = []
        self.error: Optional[Exception] = None

    def route(self, method: str, path: str, status: int = 200, body: Any = None):
        self.routes[(method.upper(), path)] = (status, body)

    def handle(self, method: str, path: str, fn: Callable[[Call], Tuple[int, Any]]):
        self.routes[(method.upper(), path)] = fn

    def calls_to(self, method: str, path: str):
        return [c for c in self.calls if c.method == method and c.path == path]

    def send(self, request, **kwargs):
        parts = urlsplit(request.url)
        path = parts.path[len(BASE_PATH):] if parts.path.startswith(BASE_PATH) else parts.path
        body = request.body
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        call = Call(
            request.method,
            path,
            dict(parse_qsl(parts.query)),
            dict(request.headers),
            json.loads(body) if body else None,
        )
        self.calls.append(call)
        if self.error is not None:
            raise self.error

        reply = self.routes.get((request.method, path), (404, {"success": False, "message": "Not found"}))
        status, payload = reply(call) if callable(reply) else reply

        resp = requests.Response()
        resp.status_code = status
        resp.url = request.url
        resp.request = request
        resp.encoding = "utf-8"
        resp.headers["Content-Type"] = "application/json"
        if payload is None:
            resp._content = b""
        elif isinstance(payload, bytes):
            resp._content = payload
        else:
            resp._content = json.dumps(payload).encode("utf-8")
        return resp

    def close(self):
        pass


def product_json(product_id="p1", name="Widget", skus=None, **extra):
    data = {
        "_id": product_id,
        "name": name,
        "description": f"{name} description",
        "brand": "Acme",
        "isActive": True,
        "tags": [],
        "skus": skus if skus is not None else [sku_json(f"{name.upper()}-1", stock=5)],
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-02T00:00:00Z",
    }
    data.update(extra)
    return data


def sku_json(code, stock=0, vendors=None, **extra):
    data = {
        "skuCode": code,
        "attributes": {"size": "M"},
        "cost": 2.5,
        "priceList": {"retail": 10, "wholesaleTier1": 8, "wholesaleTier2": 7},
        "stockQty": stock,
        "status": "ACTIVE",
        "vendors": vendors if vendors is not None else [{"name": "Supplier", "preferred": True}],
    }
    data.update(extra)
    return data


def list_json(products, total=None, page=1, limit=20, total_pages=None):
    total = len(products) if total is None else total
    if total_pages is None:
        total_pages = (total + limit - 1) // limit
    return {
        "success": True,
        "data": products,
        "meta": {"total": total, "page": page, "limit": limit, "totalPages": total_pages},
    }


def login_json(access="access-1", refresh="refresh-1"):
    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "user": {"_id": "u1", "email": ADMIN_EMAIL, "firstName": "Admin", "lastName": "User", "roles": ["admin"]},
            "tokens": {"accessToken": access, "refreshToken": refresh},
        },
    }


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend):
    s = requests.Session()
    s.mount("http://", backend)
    s.mount("https://", backend)
    return s


@pytest.fixture
def client(session):
    app.dependency_overrides[get_http_session] = lambda: session
    app.state.query_caches = QueryCacheRegistry(stale_seconds=settings.QUERY_STALE_SECONDS)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, backend):
    backend.route("POST", "/auth/login", 200, login_json())
    res = client.post("/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}, follow_redirects=False)
    assert res.status_code == 303
    backend.calls.clear()
    return client


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FormFields(HTMLParser):
    """Collects what a browser would submit for one form, minus the buttons."""

    def __init__(self, action: str):
        super().__init__()
        self.action = action
        self.fields: Dict[str, Any] = {}
        self._in_form = False
        self._select: Optional[str] = None
        self._option: Optional[Dict[str, Any]] = None
        self._textarea: Optional[str] = None

    def _add(self, name, value):
        if name in self.fields:
            previous = self.fields[name]
            self.fields[name] = (previous if isinstance(previous, list) else [previous]) + [value]
        else:
            self.fields[name] = value

    def handle_starttag(self, tag, attrs):
        a = dict(attrs)
        if tag == "form":
            self._in_form = a.get("action") == self.action
            return
        if not self._in_form:
            return
        if tag == "input" and a.get("name"):
            kind = a.get("type", "text")
            if kind in ("checkbox", "radio"):
                if "checked" in a:
                    self._add(a["name"], a.get("value") or "on")
            else:
                self._add(a["name"], a.get("value") or "")
        elif tag == "select":
            self._select = a.get("name")
        elif tag == "option" and self._select:
            if "selected" in a:
                self._add(self._select, a.get("value") or "")
        elif tag == "textarea":
            self._textarea = a.get("name")
            self._add(self._textarea, "")

    def handle_data(self, data):
        if self._textarea:
            self.fields[self._textarea] += data

    def handle_endtag(self, tag):
        if tag == "form":
            self._in_form = False
        elif tag == "select":
            self._select = None
        elif tag == "textarea":
            self._textarea = None


def form_fields(html: str, action: str) -> Dict[str, Any]:
    parser = FormFields(action)
    parser.feed(html)
    return parser.fields
