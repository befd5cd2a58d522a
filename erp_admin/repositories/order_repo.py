from typing import Any, List, NamedTuple, Optional
from urllib.parse import quote, urlencode

from erp_admin.adapters.api_client import ApiClient
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.schemas.order_schema import Order, OrderIn
from erp_admin.schemas.product_schema import ListMeta

LIST_KEY = ("orders", "list")
DETAIL_KEY = ("orders", "detail")


class OrderPage(NamedTuple):
    items: List[Order]
    meta: ListMeta


class OrderRepository:
    def __init__(self, client: ApiClient, cache: QueryCache, page_size: int = 20):
        self.client = client
        self.cache = cache
        self.page_size = page_size

    def list(self, status: Optional[str] = None, page: int = 1, limit: Optional[int] = None) -> OrderPage:
        limit = limit or self.page_size
        key = LIST_KEY + (status or "", page, limit)

        def _load():
            params = {"page": page, "limit": limit}
            if status:
                params["status"] = status
            body = self.client.get(f"/orders?{urlencode(params)}") or {}
            items = [Order.model_validate(o) for o in body.get("data") or []]
            return OrderPage(items, ListMeta.model_validate(body.get("meta") or {}))

        return self.cache.fetch(key, _load)

    def get_by_id(self, order_id: Optional[str]) -> Optional[Order]:
        if not order_id:
            return None

        def _load():
            body = self.client.get(f"/orders/{quote(order_id, safe='')}") or {}
            return Order.model_validate(body["data"]) if body.get("data") else None

        return self.cache.fetch(DETAIL_KEY + (order_id,), _load)

    def create(self, data: Any) -> Optional[Order]:
        payload = OrderIn.model_validate(data).to_wire()
        body = self.client.post("/orders", payload) or {}
        self.cache.invalidate(LIST_KEY)
        return Order.model_validate(body["data"]) if body.get("data") else None

    def update(self, order_id: str, data: Any) -> Optional[Order]:
        payload = OrderIn.model_validate(data).to_wire()
        body = self.client.put(f"/orders/{quote(order_id, safe='')}", payload) or {}
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (order_id,))
        return Order.model_validate(body["data"]) if body.get("data") else None

    def delete(self, order_id: str) -> None:
        self.client.delete(f"/orders/{quote(order_id, safe='')}")
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (order_id,))
