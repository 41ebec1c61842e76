from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from greenleaf.db.base import Base


class Inventory(Base):
    """
    Stock for one strain.

    quantity is whole grams on hand and never goes negative. price_per_gram
    is the live price; orders snapshot it at checkout.
    """
    __tablename__ = "inventory"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    strain_id = Column(Integer, ForeignKey("strains.id", ondelete="CASCADE"), nullable=False, unique=True)
    quantity = Column(Integer, nullable=False, default=0)
    price_per_gram = Column(Numeric(10, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    strain = relationship("Strain", back_populates="inventory")
