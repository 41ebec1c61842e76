from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from greenleaf.models.strain import StrainType

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class InventoryInfo(BaseModel):
    quantity: int
    price_per_gram: float

    class Config:
        from_attributes = True


class StrainOut(BaseModel):
    id: int
    name: str
    slug: str
    type: str
    thc_percent: Optional[float] = None
    cbd_percent: Optional[float] = None
    effects: List[str] = []
    flavors: List[str] = []
    description: Optional[str] = None
    image_url: Optional[str] = None
    leafly_url: Optional[str] = None
    in_stock: bool = False
    inventory: Optional[InventoryInfo] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StrainPage(BaseModel):
    strains: List[StrainOut]
    next_cursor: Optional[int] = None


class StrainMatch(BaseModel):
    """A strain returned by vector or attribute retrieval."""
    id: int
    name: str
    slug: str
    type: str
    thc_percent: Optional[float] = None
    cbd_percent: Optional[float] = None
    effects: List[str] = []
    flavors: List[str] = []
    description: Optional[str] = None
    image_url: Optional[str] = None
    similarity: float

    class Config:
        from_attributes = True


class StrainCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    type: StrainType
    thc_percent: Optional[float] = Field(None, ge=0, le=100)
    cbd_percent: Optional[float] = Field(None, ge=0, le=100)
    effects: List[str] = []
    flavors: List[str] = []
    description: Optional[str] = None
    image_url: Optional[str] = None
    leafly_url: Optional[str] = None


class StrainUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    type: Optional[StrainType] = None
    thc_percent: Optional[float] = Field(None, ge=0, le=100)
    cbd_percent: Optional[float] = Field(None, ge=0, le=100)
    effects: Optional[List[str]] = None
    flavors: Optional[List[str]] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    leafly_url: Optional[str] = None
