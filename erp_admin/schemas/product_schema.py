# erp_admin/schemas/product_schema.py
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for backend payloads: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SkuStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class ContactInfo(WireModel):
    email: str = ""
    phone: str = ""


class Vendor(WireModel):
    name: str
    vendor_sku: str = Field("", alias="vendorSKU")
    lead_time_days: int = Field(0, ge=0)
    last_cost: float = Field(0, ge=0)
    preferred: bool = False
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    notes: str = ""

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Vendor name is required")
        return v


class PriceList(WireModel):
    retail: float = Field(0, ge=0)
    wholesale_tier1: float = Field(0, ge=0)
    wholesale_tier2: float = Field(0, ge=0)


class Sku(WireModel):
    sku_code: str
    barcode: Optional[str] = None
    attributes: Dict[str, str] = Field(default_factory=dict)
    cost: float = Field(0, ge=0)
    price_list: PriceList = Field(default_factory=PriceList)
    stock_qty: int = Field(0, ge=0)
    status: SkuStatus = SkuStatus.ACTIVE
    vendors: List[Vendor] = Field(default_factory=list)

    @field_validator("sku_code")
    @classmethod
    def _sku_code_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("SKU code is required")
        return v


class ProductIn(WireModel):
    """Create/update payload. Server-assigned fields (id, timestamps) are not accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    brand: Optional[str] = None
    barcode: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    skus: List[Sku] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name is required")
        return v

    @field_validator("skus")
    @classmethod
    def _unique_sku_codes(cls, skus: List[Sku]) -> List[Sku]:
        seen = set()
        for s in skus:
            if s.sku_code in seen:
                raise ValueError(f"Duplicate SKU code: {s.sku_code}")
            seen.add(s.sku_code)
        return skus


class Product(ProductIn):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_stock(self) -> int:
        return sum(s.stock_qty for s in self.skus)

    def to_payload(self) -> dict:
        """The product as a create/update body, without server-assigned fields."""
        return ProductIn.model_validate(self.model_dump()).to_wire()


class ListMeta(WireModel):
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0


class ProductListResponse(WireModel):
    success: bool = True
    data: List[Product] = Field(default_factory=list)
    meta: ListMeta = Field(default_factory=ListMeta)


class ProductResponse(WireModel):
    success: bool = True
    data: Optional[Product] = None
    message: Optional[str] = None
