"""
Cart: keyed by the anonymous `cart_session` cookie, optionally linked to a
Clerk user once they sign in. One line per strain.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from greenleaf.db.base import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)  # Clerk user id
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "strain_id", name="uq_cart_item_strain"),)

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    strain_id = Column(Integer, ForeignKey("strains.id", ondelete="CASCADE"), nullable=False)
    grams = Column(Float, nullable=False)

    cart = relationship("Cart", back_populates="items")
    strain = relationship("Strain", back_populates="cart_items")
