# erp_admin/schemas/order_schema.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, Field

from erp_admin.schemas.product_schema import WireModel


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderChannel(str, Enum):
    POS = "POS"
    B2B = "B2B"


class OrderLine(WireModel):
    sku_code: str
    qty: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class OrderTotals(WireModel):
    subtotal: float
    tax: float
    total: float


class OrderIn(WireModel):
    customer_id: Optional[str] = None
    lines: List[OrderLine]
    status: OrderStatus
    totals: OrderTotals
    channel: OrderChannel


class Order(OrderIn):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    created_at: Optional[datetime] = None
