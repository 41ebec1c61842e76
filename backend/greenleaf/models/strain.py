"""
Strain: one catalog product.

`embedding` holds the text-embedding vector used by similarity search and the
budtender retriever. It is NULL until the embedding job has processed the row
and is cleared whenever descriptive fields change.
"""
import enum

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from greenleaf.core.config import settings
from greenleaf.db.base import Base


class StrainType(str, enum.Enum):
    INDICA = "INDICA"
    SATIVA = "SATIVA"
    HYBRID = "HYBRID"


class Strain(Base):
    __tablename__ = "strains"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    type = Column(String(16), nullable=False)  # INDICA | SATIVA | HYBRID
    thc_percent = Column(Numeric(5, 2), nullable=True)
    cbd_percent = Column(Numeric(5, 2), nullable=True)
    effects = Column(JSON, nullable=False, default=list)
    flavors = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)
    leafly_url = Column(String(1024), nullable=True)
    embedding = Column(Vector(settings.EMBEDDING_DIMENSIONS), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    inventory = relationship(
        "Inventory",
        back_populates="strain",
        uselist=False,
        cascade="all, delete-orphan",
    )
    cart_items = relationship("CartItem", back_populates="strain", cascade="all, delete-orphan")

    @property
    def in_stock(self) -> bool:
        return self.inventory is not None and self.inventory.quantity > 0
