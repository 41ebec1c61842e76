"""Stripe Checkout: start a payment and look up the result."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from greenleaf.api.deps import get_db, get_optional_user_id, get_cart_session_id
from greenleaf.core.rate_limiter import checkout_rate_limiter, limit_with
from greenleaf.schemas.order import CheckoutSession, OrderSummary
from greenleaf.services import cart_service, order_service

router = APIRouter()


@router.post("", response_model=CheckoutSession, dependencies=[Depends(limit_with(checkout_rate_limiter))])
def create_checkout(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    """Returns the Stripe-hosted payment page URL for the caller's cart."""
    cart = cart_service.find_cart(db, user_id, session_id)
    url = order_service.start_checkout(db, cart, user_id=user_id)
    return {"url": url}


@router.get("/verify", response_model=OrderSummary)
def verify_checkout(session_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Order behind a Stripe session, for the checkout success page."""
    return order_service.get_order_by_session(db, session_id)
