import pytest
from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiClient
from erp_admin.adapters.credentials import MemoryCredentialStore
from erp_admin.repositories.order_repo import OrderRepository
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.repositories.user_repo import UserRepository

from conftest import BASE, list_json

ORDER = {
    "_id": "o1",
    "customerId": "c1",
    "lines": [{"skuCode": "A", "qty": 2, "price": 5}],
    "status": "PENDING",
    "totals": {"subtotal": 10, "tax": 1, "total": 11},
    "channel": "POS",
}


@pytest.fixture
def api(session):
    return ApiClient(BASE, MemoryCredentialStore(access_token="tok"), session=session)


def test_order_list_filters_by_status(backend, api):
    backend.route("GET", "/orders", 200, list_json([ORDER]))
    repo = OrderRepository(api, QueryCache())
    page = repo.list(status="PENDING")
    assert backend.calls[0].query == {"page": "1", "limit": "20", "status": "PENDING"}
    assert page.items[0].id == "o1"
    assert page.items[0].totals.total == 11
    repo.list(status="PENDING")
    assert len(backend.calls) == 1


def test_order_create_invalidates_list(backend, api):
    backend.route("GET", "/orders", 200, list_json([]))
    backend.route("POST", "/orders", 201, {"success": True, "data": ORDER})
    repo = OrderRepository(api, QueryCache())
    repo.list()
    created = repo.create({k: v for k, v in ORDER.items() if k != "_id"})
    repo.list()
    assert created.id == "o1"
    assert len(backend.calls_to("GET", "/orders")) == 2
    assert backend.calls_to("POST", "/orders")[0].json["lines"][0]["skuCode"] == "A"


def test_order_validation_blocks_request(backend, api):
    with pytest.raises(ValidationError):
        OrderRepository(api, QueryCache()).create({"lines": [], "status": "NOPE"})
    assert backend.calls == []


def test_user_search_and_detail(backend, api):
    user = {"_id": "u1", "email": "a@warehouse.com", "name": "Ann", "roles": ["admin"]}
    backend.route("GET", "/users", 200, list_json([user]))
    backend.route("GET", "/users/u1", 200, {"success": True, "data": user})
    repo = UserRepository(api, QueryCache())
    assert repo.list(search="ann").items[0].email == "a@warehouse.com"
    assert backend.calls[0].query["search"] == "ann"
    assert repo.get_by_id("u1").has_role("admin")
    assert repo.get_by_id("") is None


def test_user_delete_drops_cached_detail(backend, api):
    user = {"_id": "u1", "email": "a@warehouse.com", "name": "Ann"}
    backend.route("GET", "/users/u1", 200, {"success": True, "data": user})
    backend.route("DELETE", "/users/u1", 204, None)
    repo = UserRepository(api, QueryCache())
    repo.get_by_id("u1")
    repo.delete("u1")
    repo.get_by_id("u1")
    assert len(backend.calls_to("GET", "/users/u1")) == 2
