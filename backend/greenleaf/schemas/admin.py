from pydantic import BaseModel, Field
from typing import List, Optional

from greenleaf.models.order import OrderStatus
from greenleaf.schemas.order import OrderOut
from greenleaf.schemas.strain import StrainOut


class DashboardStats(BaseModel):
    total_strains: int
    total_inventory: int  # grams on hand
    total_orders: int
    total_revenue: int  # cents, PAID + FULFILLED
    low_stock_count: int


class AdminStrainPage(BaseModel):
    strains: List[StrainOut]
    total: int
    pages: int
    page: int


class InventoryUpsert(BaseModel):
    strain_id: int
    quantity: Optional[int] = Field(None, ge=0)
    price_per_gram: Optional[float] = Field(None, ge=0)


class InventoryRow(BaseModel):
    id: int
    strain_id: int
    strain_name: str
    strain_slug: str
    strain_type: str
    image_url: Optional[str] = None
    quantity: int
    price_per_gram: float
    low_stock: bool


class BulkInventoryResult(BaseModel):
    updated: int


class AdminOrderPage(BaseModel):
    orders: List[OrderOut]
    total: int
    pages: int
    page: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
