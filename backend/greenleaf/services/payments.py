"""
Stripe integration: hosted checkout sessions and webhook verification.

Webhook payloads are verified against the endpoint secret with Stripe's
signature scheme before anything in them is trusted.
"""
import json
from typing import List, Tuple

import stripe

from greenleaf.core.config import settings
from greenleaf.core.log_config import payment_logger as logger


SIGNATURE_TOLERANCE_SECONDS = 300


class PaymentsNotConfigured(RuntimeError):
    pass


def create_checkout_session(
    line_items: List[dict],
    metadata: dict,
    success_url: str,
    cancel_url: str,
) -> Tuple[str, str]:
    """Create a hosted payment page. Returns (session id, redirect url)."""
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentsNotConfigured("STRIPE_SECRET_KEY is not set")

    session = stripe.checkout.Session.create(
        api_key=settings.STRIPE_SECRET_KEY,
        payment_method_types=["card"],
        mode="payment",
        line_items=line_items,
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=metadata,
    )
    logger.info(f"Stripe checkout session created: {session.id}")
    return session.id, session.url


def parse_webhook_event(payload: bytes, signature: str) -> dict:
    """
    Verify the Stripe-Signature header and decode the event.

    Raises stripe.SignatureVerificationError on a bad or stale signature and
    ValueError on a malformed body.
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise PaymentsNotConfigured("STRIPE_WEBHOOK_SECRET is not set")

    body = payload.decode("utf-8")
    stripe.WebhookSignature.verify_header(
        body,
        signature,
        settings.STRIPE_WEBHOOK_SECRET,
        tolerance=SIGNATURE_TOLERANCE_SECONDS,
    )
    event = json.loads(body)
    if not isinstance(event, dict) or "type" not in event:
        raise ValueError("Webhook body is not a Stripe event")
    return event
