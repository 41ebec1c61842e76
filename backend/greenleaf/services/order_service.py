"""
Order lifecycle: checkout, Stripe webhook fulfilment, customer history and
back-office status changes.

    PENDING --(checkout.session.completed)--> PAID --(admin)--> FULFILLED
    PENDING --(checkout.session.expired)----> CANCELLED
"""
from typing import List, Optional, Tuple

import stripe
from sqlalchemy.orm import Session, selectinload

from greenleaf.core.audit import AuditLog
from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError
from greenleaf.core.log_config import order_logger as logger, payment_logger
from greenleaf.models.cart import Cart, CartItem
from greenleaf.models.order import Order, OrderItem, OrderStatus, COMPLETED_STATUSES
from greenleaf.services import email_service, inventory_service, payments
from greenleaf.services.cart_service import cart_lines


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING.value: {OrderStatus.PAID.value, OrderStatus.CANCELLED.value},
    OrderStatus.PAID.value: {OrderStatus.FULFILLED.value, OrderStatus.CANCELLED.value},
    OrderStatus.FULFILLED.value: set(),
    OrderStatus.CANCELLED.value: set(),
}


def _order_query(db: Session):
    return db.query(Order).options(selectinload(Order.items))


# ==============================================================================
# CHECKOUT
# ==============================================================================

def start_checkout(db: Session, cart: Optional[Cart], user_id: Optional[str] = None) -> str:
    """
    Create a Stripe Checkout session for the cart and a PENDING order that
    snapshots names and prices. Returns the hosted payment page URL.

    Each cart line is one Stripe line item priced at its subtotal with
    quantity 1, since Stripe quantities must be whole numbers.
    """
    if cart is None or not cart.items:
        raise BusinessError.bad_request("Cart is empty")

    lines = cart_lines(cart)
    line_items = []
    for line in lines:
        product_data = {
            "name": line["strain_name"],
            "description": f"{line['strain_type']} - {line['grams']:g}g",
        }
        if line["image_url"]:
            product_data["images"] = [line["image_url"]]
        line_items.append({
            "price_data": {
                "currency": settings.STRIPE_CURRENCY,
                "product_data": product_data,
                "unit_amount": line["subtotal"],
            },
            "quantity": 1,
        })
    total_cents = sum(line["subtotal"] for line in lines)

    try:
        session_id, url = payments.create_checkout_session(
            line_items=line_items,
            metadata={"cart_id": str(cart.id), "cart_session_id": cart.session_id},
            success_url=f"{settings.APP_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.APP_URL}/cart",
        )
    except (stripe.StripeError, payments.PaymentsNotConfigured) as e:
        raise BusinessError.bad_gateway("Payment provider", e)

    order = Order(
        stripe_session_id=session_id,
        status=OrderStatus.PENDING.value,
        total_cents=total_cents,
        user_id=user_id or cart.user_id,
        items=[
            OrderItem(
                strain_id=line["strain_id"],
                strain_name=line["strain_name"],
                grams=line["grams"],
                price_per_gram=line["price_per_gram"],
                price_cents=line["subtotal"],
            )
            for line in lines
        ],
    )
    db.add(order)
    db.commit()

    AuditLog.log_order_event("created", order.id, session_id, {"total_cents": total_cents, "lines": len(lines)})
    return url


def get_order_by_session(db: Session, stripe_session_id: str) -> Order:
    order = _order_query(db).filter(Order.stripe_session_id == stripe_session_id).first()
    if order is None:
        raise BusinessError.not_found("Order")
    return order


# ==============================================================================
# STRIPE WEBHOOK
# ==============================================================================

def _clear_checkout_cart(db: Session, metadata: dict):
    cart = None
    cart_id = metadata.get("cart_id")
    if cart_id and str(cart_id).isdigit():
        cart = db.get(Cart, int(cart_id))
    if cart is None and metadata.get("cart_session_id"):
        cart = db.query(Cart).filter(Cart.session_id == metadata["cart_session_id"]).first()
    if cart is None:
        logger.info("Checkout cart already gone; nothing to clear")
        return
    db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)


def handle_checkout_completed(db: Session, session: dict) -> Optional[Order]:
    """
    Mark the order PAID, take stock and empty the cart in one transaction,
    then email the customer. Redelivered events are ignored.
    """
    session_id = session.get("id")
    order = (
        _order_query(db)
        .filter(Order.stripe_session_id == session_id)
        .with_for_update()
        .first()
    )
    if order is None:
        payment_logger.warning(f"Order not found for Stripe session {session_id}")
        return None
    if order.status != OrderStatus.PENDING.value:
        payment_logger.info(f"Order {order.id} already {order.status}; ignoring redelivery")
        return None

    customer = session.get("customer_details") or {}
    try:
        order.status = OrderStatus.PAID.value
        order.email = customer.get("email") or session.get("customer_email")
        shortfalls = inventory_service.decrement_for_items(db, order.items)
        _clear_checkout_cart(db, session.get("metadata") or {})
        db.commit()
    except Exception:
        db.rollback()
        raise

    details = {"total_cents": order.total_cents}
    if shortfalls:
        details["stock_shortfall_strain_ids"] = shortfalls
        logger.warning(f"Order {order.id} paid with insufficient stock for strains {shortfalls}")
    AuditLog.log_order_event("paid", order.id, session_id, details)

    db.refresh(order)
    email_service.send_order_confirmation(order)
    return order


def handle_checkout_expired(db: Session, session: dict) -> Optional[Order]:
    session_id = session.get("id")
    order = db.query(Order).filter(Order.stripe_session_id == session_id).first()
    if order is None or order.status != OrderStatus.PENDING.value:
        return None
    order.status = OrderStatus.CANCELLED.value
    db.commit()
    AuditLog.log_order_event("cancelled", order.id, session_id, {"reason": "checkout_expired"})
    return order


def handle_payment_failed(db: Session, payment_intent: dict) -> None:
    error = payment_intent.get("last_payment_error") or {}
    payment_logger.warning(
        f"Payment failed for intent {payment_intent.get('id')}: {error.get('message', 'unknown reason')}"
    )
    AuditLog.log_order_event("payment_failed", None, details={"payment_intent": payment_intent.get("id")})


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_completed,
    "checkout.session.expired": handle_checkout_expired,
    "payment_intent.payment_failed": handle_payment_failed,
}


def process_stripe_event(db: Session, event: dict) -> bool:
    """Dispatch a verified event. Returns False for event types we ignore."""
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        payment_logger.info(f"Unhandled Stripe event type: {event_type}")
        return False
    handler(db, event["data"]["object"])
    return True


# ==============================================================================
# CUSTOMER ORDERS
# ==============================================================================

def list_user_orders(
    db: Session,
    user_id: str,
    limit: int = 10,
    cursor: Optional[int] = None,
) -> Tuple[List[Order], Optional[int]]:
    """Paid and fulfilled orders, newest first. `cursor` is the first id of the page."""
    query = _order_query(db).filter(Order.user_id == user_id, Order.status.in_(COMPLETED_STATUSES))
    if cursor is not None:
        query = query.filter(Order.id <= cursor)
    orders = query.order_by(Order.id.desc()).limit(limit + 1).all()

    next_cursor = None
    if len(orders) > limit:
        next_cursor = orders.pop().id
    return orders, next_cursor


def get_user_order(db: Session, user_id: str, order_id: int) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if order is None or order.user_id != user_id:
        raise BusinessError.not_found("Order", reason=f"order {order_id} not visible to caller")
    return order


# ==============================================================================
# BACK-OFFICE
# ==============================================================================

def admin_list_orders(
    db: Session,
    status: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[List[Order], int]:
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    total = query.count()
    orders = (
        query.options(selectinload(Order.items))
        .order_by(Order.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return orders, total


def get_order(db: Session, order_id: int) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if order is None:
        raise BusinessError.not_found("Order")
    return order


def update_order_status(db: Session, order: Order, new_status: str) -> str:
    """Apply an allowed transition and notify the customer. Returns the previous status."""
    previous = order.status
    if new_status == previous:
        return previous
    if new_status not in ALLOWED_TRANSITIONS.get(previous, set()):
        raise BusinessError.bad_request(f"Cannot change order status from {previous} to {new_status}")

    order.status = new_status
    db.commit()
    db.refresh(order)

    event = "fulfilled" if new_status == OrderStatus.FULFILLED.value else new_status.lower()
    AuditLog.log_order_event(event, order.id, order.stripe_session_id, {"previous_status": previous})
    email_service.send_order_status_update(order, previous)
    return previous
