"""Order history for the signed-in customer."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from greenleaf.api.deps import get_db, require_user
from greenleaf.schemas.order import OrderOut, OrderPage
from greenleaf.services import order_service

router = APIRouter()


@router.get("", response_model=OrderPage)
def list_orders(
    limit: int = Query(10, ge=1, le=50),
    cursor: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user),
):
    orders, next_cursor = order_service.list_user_orders(db, user_id, limit, cursor)
    return {"orders": orders, "next_cursor": next_cursor}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db), user_id: str = Depends(require_user)):
    return order_service.get_user_order(db, user_id, order_id)
