"""
Cart resolution and line management.

A caller is identified by their Clerk user id (when signed in) and by the
anonymous `cart_session` cookie. The user's cart wins; an anonymous cart found
while signed in is claimed by that user.
"""
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError
from greenleaf.core.log_config import cart_logger as logger
from greenleaf.models.cart import Cart, CartItem
from greenleaf.models.strain import Strain
from greenleaf.services.pricing import subtotal_cents


def new_session_id() -> str:
    return uuid.uuid4().hex


def _cart_query(db: Session):
    return db.query(Cart).options(
        selectinload(Cart.items).selectinload(CartItem.strain).selectinload(Strain.inventory)
    )


def find_cart(db: Session, user_id: Optional[str], session_id: Optional[str]) -> Optional[Cart]:
    cart = None
    if user_id:
        cart = _cart_query(db).filter(Cart.user_id == user_id).order_by(Cart.id).first()

    if cart is None and session_id:
        cart = _cart_query(db).filter(Cart.session_id == session_id).first()
        if cart is not None and user_id:
            if cart.user_id is None:
                cart.user_id = user_id
                db.commit()
                logger.info(f"Linked anonymous cart {cart.id} to user")
            elif cart.user_id != user_id:
                # Cookie left behind by another account on this browser
                cart = None
    return cart


def get_or_create_cart(db: Session, user_id: Optional[str], session_id: str) -> Cart:
    cart = find_cart(db, user_id, session_id)
    if cart is None:
        if db.query(Cart.id).filter(Cart.session_id == session_id).first() is not None:
            session_id = new_session_id()
        cart = Cart(session_id=session_id, user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
        logger.info(f"Cart {cart.id} created")
    return cart


def line_price(item: CartItem):
    inventory = item.strain.inventory
    return inventory.price_per_gram if inventory is not None else 0


def cart_lines(cart: Optional[Cart]) -> List[dict]:
    if cart is None:
        return []
    lines = []
    for item in cart.items:
        price = line_price(item)
        lines.append({
            "id": item.id,
            "strain_id": item.strain_id,
            "strain_name": item.strain.name,
            "strain_slug": item.strain.slug,
            "strain_type": item.strain.type,
            "image_url": item.strain.image_url,
            "grams": item.grams,
            "price_per_gram": float(price),
            "subtotal": subtotal_cents(item.grams, price),
        })
    return lines


def cart_summary(cart: Optional[Cart]) -> dict:
    lines = cart_lines(cart)
    return {"items": lines, "total": sum(line["subtotal"] for line in lines)}


def _ensure_stock(strain: Strain, grams: float):
    inventory = strain.inventory
    if inventory is None or inventory.quantity < grams:
        raise BusinessError.bad_request("Insufficient inventory")


def add_item(db: Session, cart: Cart, strain_id: int, grams: float) -> CartItem:
    """Add grams of a strain, merging into an existing line for it."""
    strain = db.query(Strain).options(selectinload(Strain.inventory)).filter(Strain.id == strain_id).first()
    if strain is None:
        raise BusinessError.not_found("Strain")

    existing = next((item for item in cart.items if item.strain_id == strain_id), None)
    total_grams = grams + (existing.grams if existing else 0)
    if total_grams > settings.MAX_CART_GRAMS:
        raise BusinessError.bad_request(f"A cart line cannot exceed {settings.MAX_CART_GRAMS:g}g")
    _ensure_stock(strain, total_grams)

    if existing:
        existing.grams = total_grams
        item = existing
    else:
        item = CartItem(cart_id=cart.id, strain_id=strain_id, grams=grams)
        cart.items.append(item)

    db.commit()
    db.refresh(item)
    logger.info(f"Cart {cart.id}: strain {strain_id} now {total_grams}g")
    return item


def _owned_item(cart: Optional[Cart], item_id: int) -> CartItem:
    item = None
    if cart is not None:
        item = next((i for i in cart.items if i.id == item_id), None)
    if item is None:
        raise BusinessError.not_found("Cart item", reason=f"item {item_id} not in caller's cart")
    return item


def update_item(db: Session, cart: Optional[Cart], item_id: int, grams: float) -> CartItem:
    item = _owned_item(cart, item_id)
    _ensure_stock(item.strain, grams)
    item.grams = grams
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, cart: Optional[Cart], item_id: int) -> None:
    item = _owned_item(cart, item_id)
    cart.items.remove(item)
    db.commit()


def clear_cart(db: Session, cart: Optional[Cart]) -> None:
    if cart is None:
        return
    cart.items.clear()
    db.commit()
    logger.info(f"Cart {cart.id} cleared")
