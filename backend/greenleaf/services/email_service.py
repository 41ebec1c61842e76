"""
Transactional email: render Jinja2 templates and send through Resend.

Sending is best effort. A missing address or a provider failure is logged and
reported as None; it never fails the request or webhook that triggered it.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from greenleaf.core.config import settings
from greenleaf.models.order import OrderStatus
from greenleaf.services.pricing import format_money

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
REQUEST_TIMEOUT_SECONDS = 10

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def order_number(order) -> str:
    return f"{order.id:06d}"


def _context(order, heading: str, preview: str) -> dict:
    created = order.created_at or datetime.now(timezone.utc)
    return {
        "heading": heading,
        "preview": preview,
        "year": datetime.now(timezone.utc).year,
        "order_number": order_number(order),
        "order_date": created.strftime("%A, %B %d, %Y").replace(" 0", " "),
        "total": format_money(order.total_cents),
        "items": [
            {
                "name": item.strain_name or "Unknown Product",
                "grams": f"{item.grams:g}",
                "price_per_gram": format_money(round(float(item.price_per_gram) * 100)),
                "price": format_money(item.price_cents),
            }
            for item in order.items
        ],
    }


def render_order_confirmation(order) -> Tuple[str, str]:
    """Returns (subject, html)."""
    number = order_number(order)
    html = _env.get_template("emails/order_confirmation.html").render(
        _context(order, "Order Confirmed!", f"Your GreenLeaf order #{number} has been confirmed")
    )
    return f"Order Confirmed #{number}", html


def render_order_shipped(order) -> Tuple[str, str]:
    number = order_number(order)
    html = _env.get_template("emails/order_shipped.html").render(
        _context(order, "Your Order Has Shipped!", f"Your GreenLeaf order #{number} has shipped!")
    )
    return f"Your Order Has Shipped #{number}", html


def send_email(to: str, subject: str, html: str) -> Optional[str]:
    """POST to the Resend API. Returns the provider message id, or None."""
    if not settings.RESEND_API_KEY:
        logger.warning(f"RESEND_API_KEY not configured - skipping email '{subject}'")
        return None

    try:
        response = requests.post(
            settings.RESEND_API_URL,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json={"from": settings.EMAIL_FROM, "to": [to], "subject": subject, "html": html},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        message_id = response.json().get("id")
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Failed to send email '{subject}': {e}")
        return None

    logger.info(f"Email '{subject}' sent (id={message_id})")
    return message_id


def send_order_confirmation(order) -> Optional[str]:
    if not order.email:
        logger.warning(f"Cannot send order confirmation: no email for order {order.id}")
        return None
    subject, html = render_order_confirmation(order)
    return send_email(order.email, subject, html)


def send_order_shipped(order) -> Optional[str]:
    if not order.email:
        logger.warning(f"Cannot send shipping notification: no email for order {order.id}")
        return None
    subject, html = render_order_shipped(order)
    return send_email(order.email, subject, html)


def send_order_status_update(order, previous_status: str) -> Optional[str]:
    """Only PAID -> FULFILLED currently notifies the customer."""
    if previous_status == OrderStatus.PAID.value and order.status == OrderStatus.FULFILLED.value:
        return send_order_shipped(order)
    return None
