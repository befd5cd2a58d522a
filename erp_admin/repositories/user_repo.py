from typing import Any, List, NamedTuple, Optional
from urllib.parse import quote, urlencode

from erp_admin.adapters.api_client import ApiClient
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.schemas.product_schema import ListMeta
from erp_admin.schemas.user_schema import User, UserIn

LIST_KEY = ("users", "list")
DETAIL_KEY = ("users", "detail")


class UserPage(NamedTuple):
    items: List[User]
    meta: ListMeta


class UserRepository:
    def __init__(self, client: ApiClient, cache: QueryCache, page_size: int = 20):
        self.client = client
        self.cache = cache
        self.page_size = page_size

    def list(self, search: Optional[str] = None, page: int = 1, limit: Optional[int] = None) -> UserPage:
        search = (search or "").strip()
        limit = limit or self.page_size
        key = LIST_KEY + (search, page, limit)

        def _load():
            params = {"page": page, "limit": limit}
            if search:
                params["search"] = search
            body = self.client.get(f"/users?{urlencode(params)}") or {}
            items = [User.model_validate(u) for u in body.get("data") or []]
            return UserPage(items, ListMeta.model_validate(body.get("meta") or {}))

        return self.cache.fetch(key, _load)

    def get_by_id(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None

        def _load():
            body = self.client.get(f"/users/{quote(user_id, safe='')}") or {}
            return User.model_validate(body["data"]) if body.get("data") else None

        return self.cache.fetch(DETAIL_KEY + (user_id,), _load)

    def create(self, data: Any) -> Optional[User]:
        payload = UserIn.model_validate(data).to_wire()
        body = self.client.post("/users", payload) or {}
        self.cache.invalidate(LIST_KEY)
        return User.model_validate(body["data"]) if body.get("data") else None

    def update(self, user_id: str, data: Any) -> Optional[User]:
        payload = UserIn.model_validate(data).to_wire()
        body = self.client.put(f"/users/{quote(user_id, safe='')}", payload) or {}
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (user_id,))
        return User.model_validate(body["data"]) if body.get("data") else None

    def delete(self, user_id: str) -> None:
        self.client.delete(f"/users/{quote(user_id, safe='')}")
        self.cache.invalidate(LIST_KEY)
        self.cache.invalidate(DETAIL_KEY + (user_id,))
