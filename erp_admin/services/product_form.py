"""
Form state for the add/edit product dialog.

The state is a nested dict in the backend's wire shape
(product -> skus[] -> vendors[] -> contactInfo). Every operation returns a new
state; containers along the edited path are copied and everything else is
shared with the previous state, which is never mutated.
"""
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from erp_admin.schemas.product_schema import Product, ProductIn

FormState = Dict[str, Any]
PathKey = Union[str, int]

DEFAULT_ATTRIBUTES = ("size", "color", "material")
PRICE_TIERS = ("retail", "wholesaleTier1", "wholesaleTier2")
SKU_STATUSES = ("ACTIVE", "ARCHIVED")

# hidden inputs telling parse_form how many blocks were rendered
SKU_COUNT_FIELD = "skuCount"
VENDOR_COUNT_FIELD = "vendorCount"


class ProductFormError(Exception):
    pass


def blank_vendor(preferred: bool = False) -> Dict[str, Any]:
    return {
        "name": "",
        "vendorSKU": "",
        "leadTimeDays": 0,
        "lastCost": 0,
        "preferred": preferred,
        "contactInfo": {"email": "", "phone": ""},
        "notes": "",
    }


def blank_sku() -> Dict[str, Any]:
    return {
        "skuCode": "",
        "barcode": "",
        "attributes": {a: "" for a in DEFAULT_ATTRIBUTES},
        "cost": 0,
        "priceList": {t: 0 for t in PRICE_TIERS},
        "stockQty": 0,
        "status": "ACTIVE",
        "vendors": [blank_vendor(preferred=True)],
    }


def blank_form() -> FormState:
    return {"name": "", "description": "", "brand": "", "tags": [], "skus": [blank_sku()]}


# ---- copy-on-write primitives ----

def set_in(state: Any, path: Sequence[PathKey], value: Any) -> Any:
    """Return a copy of state with the leaf at path replaced; siblings are shared, not copied."""
    if not path:
        return value
    head, rest = path[0], path[1:]
    if isinstance(state, list):
        if not isinstance(head, int) or not 0 <= head < len(state):
            raise ProductFormError(f"Index out of range: {head!r}")
        new = list(state)
        new[head] = set_in(state[head], rest, value)
        return new
    if isinstance(state, Mapping):
        new = dict(state)
        new[head] = set_in(state.get(head), rest, value)
        return new
    raise ProductFormError(f"Cannot descend into {type(state).__name__} at {head!r}")


def get_in(state: Any, path: Sequence[PathKey], default: Any = None) -> Any:
    cur = state
    for key in path:
        try:
            cur = cur[key]
        except (KeyError, IndexError, TypeError):
            return default
    return cur


# ---- sub-form operations ----

def update_field(state: FormState, field: str, value: Any) -> FormState:
    return set_in(state, [field], value)


def add_sku(state: FormState) -> FormState:
    return set_in(state, ["skus"], state["skus"] + [blank_sku()])


def remove_sku(state: FormState, sku_index: int) -> FormState:
    skus = state["skus"]
    # at least one SKU block stays on the form
    if len(skus) <= 1 or not 0 <= sku_index < len(skus):
        return state
    return set_in(state, ["skus"], [s for i, s in enumerate(skus) if i != sku_index])


def update_sku(state: FormState, sku_index: int, field: str, value: Any) -> FormState:
    return set_in(state, ["skus", sku_index, field], value)


def update_sku_attribute(state: FormState, sku_index: int, attribute: str, value: str) -> FormState:
    return set_in(state, ["skus", sku_index, "attributes", attribute], value)


def update_sku_price(state: FormState, sku_index: int, tier: str, value: float) -> FormState:
    if tier not in PRICE_TIERS:
        raise ProductFormError(f"Unknown price tier: {tier}")
    return set_in(state, ["skus", sku_index, "priceList", tier], value)


def add_vendor(state: FormState, sku_index: int) -> FormState:
    vendors = get_in(state, ["skus", sku_index, "vendors"], [])
    return set_in(state, ["skus", sku_index, "vendors"], vendors + [blank_vendor()])


def remove_vendor(state: FormState, sku_index: int, vendor_index: int) -> FormState:
    vendors = get_in(state, ["skus", sku_index, "vendors"], [])
    if len(vendors) <= 1 or not 0 <= vendor_index < len(vendors):
        return state
    return set_in(state, ["skus", sku_index, "vendors"], [v for i, v in enumerate(vendors) if i != vendor_index])


def update_vendor(state: FormState, sku_index: int, vendor_index: int, field: str, value: Any) -> FormState:
    return set_in(state, ["skus", sku_index, "vendors", vendor_index, field], value)


def update_vendor_contact(state: FormState, sku_index: int, vendor_index: int, field: str, value: str) -> FormState:
    return set_in(state, ["skus", sku_index, "vendors", vendor_index, "contactInfo", field], value)


_ACTION_RE = re.compile(r"^(add_sku|remove_sku|add_vendor|remove_vendor)(?::(\d+))?(?::(\d+))?$")


def apply_action(state: FormState, action: str) -> FormState:
    """Dispatch a sub-form button value such as "add_vendor:0" or "remove_vendor:1:2"."""
    m = _ACTION_RE.match(action or "")
    if not m:
        raise ProductFormError(f"Unknown form action: {action!r}")
    name, a, b = m.group(1), m.group(2), m.group(3)
    if name == "add_sku":
        return add_sku(state)
    if a is None:
        raise ProductFormError(f"Form action {name} needs a SKU index")
    if name == "remove_sku":
        return remove_sku(state, int(a))
    if name == "add_vendor":
        return add_vendor(state, int(a))
    if b is None:
        raise ProductFormError("remove_vendor needs a vendor index")
    return remove_vendor(state, int(a), int(b))


# ---- conversions ----

def form_from_product(product: Product) -> FormState:
    wire = product.model_dump(by_alias=True, mode="json")
    skus = []
    for s in wire.get("skus") or []:
        attrs = {a: "" for a in DEFAULT_ATTRIBUTES}
        attrs.update(s.get("attributes") or {})
        skus.append(
            {
                "skuCode": s["skuCode"],
                "barcode": s.get("barcode") or "",
                "attributes": attrs,
                "cost": s.get("cost", 0),
                "priceList": dict(s.get("priceList") or {t: 0 for t in PRICE_TIERS}),
                "stockQty": s.get("stockQty", 0),
                "status": s.get("status", "ACTIVE"),
                "vendors": [dict(v) for v in s.get("vendors") or []],
            }
        )
    return {
        "name": product.name,
        "description": product.description or "",
        "brand": product.brand or "",
        "categoryId": product.category_id,
        "barcode": product.barcode,
        "price": product.price,
        "isActive": product.is_active,
        "tags": list(product.tags),
        "skus": skus,
    }


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def form_to_payload(state: FormState) -> Dict[str, Any]:
    """
    Build the create/update body from form state and run it through ProductIn.
    Empty optional text fields and empty attribute slots are left out.
    Raises pydantic.ValidationError.
    """
    tags = state.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    data = {
        "name": state.get("name", ""),
        "description": _blank_to_none(state.get("description")),
        "brand": _blank_to_none(state.get("brand")),
        "categoryId": _blank_to_none(state.get("categoryId")),
        "barcode": _blank_to_none(state.get("barcode")),
        "price": state.get("price"),
        "tags": tags,
        "skus": [
            {
                **sku,
                "barcode": _blank_to_none(sku.get("barcode")),
                "attributes": {k: v for k, v in (sku.get("attributes") or {}).items() if v not in ("", None)},
            }
            for sku in state.get("skus") or []
        ],
    }
    if "isActive" in state:
        data["isActive"] = state["isActive"]
    return ProductIn.model_validate(data).to_wire()


# ---- HTML form fields ----

def _to_float(raw: Optional[str]) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0


def _to_int(raw: Optional[str]) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return 0


def field_name(*path: PathKey) -> str:
    """Flat input name for a nested path: ("skus", 0, "priceList", "retail") -> "skus-0-priceList-retail"."""
    return "-".join(str(p) for p in path)


def _indexes(keys: Iterable[str], pattern: str) -> List[int]:
    rx = re.compile(pattern)
    found = set()
    for k in keys:
        m = rx.match(k)
        if m:
            found.add(int(m.group(1)))
    return sorted(found)


def parse_form(fields: Mapping[str, str]) -> FormState:
    """
    Rebuild form state from submitted flat fields.
    Block indexes are renumbered densely in ascending order; missing numbers
    parse as 0 and unchecked checkboxes are absent, so false. For isActive the
    form sends a hidden "false" before the checkbox and the last value wins.
    Count markers keep an empty SKU or vendor list empty; only unmarked
    submissions get the default blocks.
    """
    keys = list(fields.keys())
    state = blank_form()
    state = update_field(state, "name", fields.get("name", ""))
    state = update_field(state, "description", fields.get("description", ""))
    state = update_field(state, "brand", fields.get("brand", ""))
    state = update_field(state, "categoryId", fields.get("categoryId", ""))
    state = update_field(state, "barcode", fields.get("barcode", ""))
    raw_price = (fields.get("price") or "").strip()
    state = update_field(state, "price", _to_float(raw_price) if raw_price else None)
    state = update_field(state, "tags", [t.strip() for t in fields.get("tags", "").split(",") if t.strip()])
    if "isActive" in fields:
        state = update_field(state, "isActive", fields.get("isActive") in ("on", "true", "1"))

    sku_ids = _indexes(keys, r"^skus-(\d+)-")
    # the rendered form marks its blocks; without markers this is a fresh add form
    if SKU_COUNT_FIELD in fields:
        state = update_field(state, "skus", [blank_sku() for _ in sku_ids])
    else:
        state = update_field(state, "skus", [blank_sku() for _ in sku_ids] or [blank_sku()])
    for i, sid in enumerate(sku_ids):
        p = f"skus-{sid}-"
        state = update_sku(state, i, "skuCode", fields.get(p + "skuCode", ""))
        state = update_sku(state, i, "barcode", fields.get(p + "barcode", ""))
        state = update_sku(state, i, "cost", _to_float(fields.get(p + "cost")))
        state = update_sku(state, i, "stockQty", _to_int(fields.get(p + "stockQty")))
        status = fields.get(p + "status", "ACTIVE")
        state = update_sku(state, i, "status", status if status in SKU_STATUSES else "ACTIVE")
        attr_names = list(DEFAULT_ATTRIBUTES) + [
            k[len(p + "attributes-"):] for k in keys
            if k.startswith(p + "attributes-") and k[len(p + "attributes-"):] not in DEFAULT_ATTRIBUTES
        ]
        for attr in attr_names:
            state = update_sku_attribute(state, i, attr, fields.get(p + "attributes-" + attr, ""))
        for tier in PRICE_TIERS:
            state = update_sku_price(state, i, tier, _to_float(fields.get(p + "priceList-" + tier)))

        vendor_ids = _indexes(keys, rf"^skus-{sid}-vendors-(\d+)-")
        vendors = [blank_vendor() for _ in vendor_ids]
        if not vendors and p + VENDOR_COUNT_FIELD not in fields:
            vendors = [blank_vendor(preferred=True)]
        state = update_sku(state, i, "vendors", vendors)
        for j, vid in enumerate(vendor_ids):
            vp = f"{p}vendors-{vid}-"
            state = update_vendor(state, i, j, "name", fields.get(vp + "name", ""))
            state = update_vendor(state, i, j, "vendorSKU", fields.get(vp + "vendorSKU", ""))
            state = update_vendor(state, i, j, "leadTimeDays", _to_int(fields.get(vp + "leadTimeDays")))
            state = update_vendor(state, i, j, "lastCost", _to_float(fields.get(vp + "lastCost")))
            state = update_vendor(state, i, j, "preferred", vp + "preferred" in fields)
            state = update_vendor(state, i, j, "notes", fields.get(vp + "notes", ""))
            state = update_vendor_contact(state, i, j, "email", fields.get(vp + "contactInfo-email", ""))
            state = update_vendor_contact(state, i, j, "phone", fields.get(vp + "contactInfo-phone", ""))
    return state

