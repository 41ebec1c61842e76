"""Inventory reads and writes. Stock only moves on admin edits and paid orders."""
import math
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError
from greenleaf.core.log_config import order_logger as logger
from greenleaf.models.inventory import Inventory
from greenleaf.models.order import OrderItem
from greenleaf.models.strain import Strain


def list_inventory(db: Session, low_stock_only: bool = False) -> List[dict]:
    query = db.query(Inventory).join(Strain, Inventory.strain_id == Strain.id).options(joinedload(Inventory.strain))
    if low_stock_only:
        query = query.filter(Inventory.quantity < settings.LOW_STOCK_THRESHOLD)

    return [inventory_row(row) for row in query.order_by(Strain.name).all()]


def inventory_row(row: Inventory) -> dict:
    return {
        "id": row.id,
        "strain_id": row.strain_id,
        "strain_name": row.strain.name,
        "strain_slug": row.strain.slug,
        "strain_type": row.strain.type,
        "image_url": row.strain.image_url,
        "quantity": row.quantity,
        "price_per_gram": float(row.price_per_gram),
        "low_stock": row.quantity < settings.LOW_STOCK_THRESHOLD,
    }


def _upsert(db: Session, strain_id: int, quantity: Optional[int], price_per_gram: Optional[float]) -> Inventory:
    if db.get(Strain, strain_id) is None:
        raise BusinessError.not_found("Strain", reason=f"inventory upsert for strain {strain_id}")

    item = db.query(Inventory).filter(Inventory.strain_id == strain_id).first()
    if item is None:
        item = Inventory(strain_id=strain_id, quantity=quantity or 0, price_per_gram=price_per_gram or 0)
        db.add(item)
    else:
        if quantity is not None:
            item.quantity = quantity
        if price_per_gram is not None:
            item.price_per_gram = price_per_gram
    return item


def upsert_inventory(db: Session, strain_id: int, quantity: Optional[int] = None, price_per_gram: Optional[float] = None) -> Inventory:
    item = _upsert(db, strain_id, quantity, price_per_gram)
    db.commit()
    db.refresh(item)
    return item


def bulk_upsert_inventory(db: Session, updates: Iterable[dict]) -> int:
    """All-or-nothing: one unknown strain rolls the whole batch back."""
    count = 0
    try:
        for update in updates:
            _upsert(db, update["strain_id"], update.get("quantity"), update.get("price_per_gram"))
            count += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count


def decrement_for_items(db: Session, items: Iterable[OrderItem]) -> List[int]:
    """
    Take sold grams out of stock, rounding partial grams up.

    Does not commit. A strain without enough stock is left untouched and its
    id returned so the caller can flag the order for manual review.
    """
    shortfalls = []
    for item in items:
        if item.strain_id is None:
            continue
        needed = math.ceil(item.grams)
        inventory = (
            db.query(Inventory)
            .filter(Inventory.strain_id == item.strain_id)
            .with_for_update()
            .first()
        )
        if inventory is None or inventory.quantity < needed:
            logger.warning(
                f"Insufficient stock for strain {item.strain_id}: need {needed}g, "
                f"have {inventory.quantity if inventory else 0}g"
            )
            shortfalls.append(item.strain_id)
            continue
        inventory.quantity -= needed
    return shortfalls
