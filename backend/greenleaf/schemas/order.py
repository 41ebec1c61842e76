from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class CheckoutSession(BaseModel):
    url: str


class OrderItemOut(BaseModel):
    id: int
    strain_id: Optional[int] = None
    strain_name: str
    grams: float
    price_per_gram: float
    price_cents: int

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    """What the checkout success page may show: no customer details."""
    id: int
    status: str
    total_cents: int
    items: List[OrderItemOut] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderOut(OrderSummary):
    email: Optional[str] = None
    user_id: Optional[str] = None
    stripe_session_id: str


class OrderPage(BaseModel):
    orders: List[OrderOut]
    next_cursor: Optional[int] = None
