from pydantic import BaseModel, Field
from typing import List, Optional

from greenleaf.core.config import settings


class CartItemAdd(BaseModel):
    strain_id: int
    grams: float = Field(..., ge=settings.MIN_CART_GRAMS, le=settings.MAX_CART_GRAMS)


class CartItemUpdate(BaseModel):
    grams: float = Field(..., ge=settings.MIN_CART_GRAMS, le=settings.MAX_CART_GRAMS)


class CartLine(BaseModel):
    id: int
    strain_id: int
    strain_name: str
    strain_slug: str
    strain_type: str
    image_url: Optional[str] = None
    grams: float
    price_per_gram: float
    subtotal: int  # cents


class CartOut(BaseModel):
    items: List[CartLine] = []
    total: int = 0  # cents


class CartCount(BaseModel):
    count: int
