"""
Order: created PENDING at checkout, moved by the Stripe webhook and the admin
back-office. Status flow: PENDING -> PAID -> FULFILLED, PENDING -> CANCELLED.

Line items snapshot name and price so later catalog edits never change what
the customer paid.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Float, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from greenleaf.db.base import Base


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


# Statuses that count as revenue and show up in a customer's order history
COMPLETED_STATUSES = (OrderStatus.PAID.value, OrderStatus.FULFILLED.value)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    stripe_session_id = Column(String(255), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value)
    total_cents = Column(Integer, nullable=False)
    email = Column(String(255), nullable=True)
    user_id = Column(String(64), nullable=True, index=True)  # Clerk user id
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    strain_id = Column(Integer, ForeignKey("strains.id", ondelete="SET NULL"), nullable=True)
    strain_name = Column(String(255), nullable=False)  # snapshot
    grams = Column(Float, nullable=False)
    price_per_gram = Column(Numeric(10, 2), nullable=False)  # snapshot
    price_cents = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    strain = relationship("Strain")
