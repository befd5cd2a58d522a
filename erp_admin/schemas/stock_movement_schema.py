# erp_admin/schemas/stock_movement_schema.py
from datetime import datetime
from enum import Enum
from typing import Optional

from erp_admin.schemas.product_schema import WireModel


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJ = "ADJ"


class StockMovement(WireModel):
    product_id: str
    sku_code: str
    qty: int
    type: MovementType
    warehouse_id: str
    ref_type: Optional[str] = None
    ref_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def signed_qty(self) -> int:
        """Effect on stock: IN adds, OUT removes, ADJ carries its own sign."""
        if self.type == MovementType.OUT:
            return -abs(self.qty)
        if self.type == MovementType.IN:
            return abs(self.qty)
        return self.qty
