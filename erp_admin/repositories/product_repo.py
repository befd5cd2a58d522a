from typing import Any, Dict, List, NamedTuple, Optional, Union
from urllib.parse import quote, urlencode

from erp_admin.adapters.api_client import ApiClient
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.schemas.product_schema import (
    ListMeta,
    Product,
    ProductIn,
    ProductListResponse,
    ProductResponse,
)

LIST_KEY = ("products", "list")
DETAIL_KEY = ("products", "detail")


class ProductPage(NamedTuple):
    items: List[Product]
    meta: ListMeta


def validate_product(data: Union[Dict, Product, ProductIn]) -> Dict:
    """Run the schema gate and return the wire body. Any id on the input is dropped."""
    if isinstance(data, ProductIn):
        data = data.model_dump()
    return ProductIn.model_validate(data).to_wire()


class ProductRepository:
    def __init__(self, client: ApiClient, cache: QueryCache, page_size: int = 20):
        self.client = client
        self.cache = cache
        self.page_size = page_size

    def list(self, search: Optional[str] = None, page: int = 1, limit: Optional[int] = None) -> ProductPage:
        search = (search or "").strip()
        limit = limit or self.page_size
        key = LIST_KEY + (search, page, limit)

        def _load():
            params = {"page": page, "limit": limit}
            if search:
                params["search"] = search
            body = self.client.get(f"/products?{urlencode(params)}")
            resp = ProductListResponse.model_validate(body)
            return ProductPage(resp.data, resp.meta)

        return self.cache.fetch(key, _load)

    def get_by_id(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        key = DETAIL_KEY + (product_id,)

        def _load():
            body = self.client.get(f"/products/{quote(product_id, safe='')}")
            return ProductResponse.model_validate(body).data

        return self.cache.fetch(key, _load)

    def create(self, data: Any) -> Optional[Product]:
        payload = validate_product(data)
        body = self.client.post("/products", payload)
        self.cache.invalidate(LIST_KEY)
        return _unwrap(body)

    def update(self, product_id: str, data: Any) -> Optional[Product]:
        payload = validate_product(data)
        body = self.client.put(f"/products/{quote(product_id, safe='')}", payload)
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (product_id,))
        return _unwrap(body)

    def delete(self, product_id: str) -> None:
        self.client.delete(f"/products/{quote(product_id, safe='')}")
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (product_id,))


def _unwrap(body: Any) -> Optional[Product]:
    if not body:
        return None
    return ProductResponse.model_validate(body).data
