"""
Shopping cart for anonymous and signed-in shoppers.

The anonymous cart is keyed by the `cart_session` cookie, issued on the first
add. Signing in claims that cart for the user.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from greenleaf.api.deps import get_db, get_optional_user_id, get_cart_session_id
from greenleaf.core.config import settings
from greenleaf.schemas.cart import CartOut, CartItemAdd, CartItemUpdate, CartCount
from greenleaf.services import cart_service

router = APIRouter()

CART_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def _set_cart_cookie(response: Response, session_id: str):
    response.set_cookie(
        settings.CART_COOKIE,
        session_id,
        max_age=CART_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.find_cart(db, user_id, session_id)
    return cart_service.cart_summary(cart)


@router.get("/count", response_model=CartCount)
def get_cart_count(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.find_cart(db, user_id, session_id)
    return {"count": len(cart.items) if cart else 0}


@router.post("/items", response_model=CartOut, status_code=201)
def add_to_cart(
    payload: CartItemAdd,
    response: Response,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.get_or_create_cart(db, user_id, session_id or cart_service.new_session_id())
    if cart.session_id != session_id:
        _set_cart_cookie(response, cart.session_id)

    cart_service.add_item(db, cart, payload.strain_id, payload.grams)
    db.refresh(cart)
    return cart_service.cart_summary(cart)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.find_cart(db, user_id, session_id)
    cart_service.update_item(db, cart, item_id, payload.grams)
    db.refresh(cart)
    return cart_service.cart_summary(cart)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.find_cart(db, user_id, session_id)
    cart_service.remove_item(db, cart, item_id)
    db.refresh(cart)
    return cart_service.cart_summary(cart)


@router.delete("", response_model=CartOut)
def clear_cart(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
    session_id: Optional[str] = Depends(get_cart_session_id),
):
    cart = cart_service.find_cart(db, user_id, session_id)
    cart_service.clear_cart(db, cart)
    return {"items": [], "total": 0}
