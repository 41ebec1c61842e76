"""
Stripe webhook receiver.

Stripe retries any non-2xx delivery, so verification failures answer 400 (do
not retry) and processing failures answer 500 (retry later).
"""

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from greenleaf.api.deps import get_db
from greenleaf.core.log_config import payment_logger as logger
from greenleaf.services import order_service, payments

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        return JSONResponse(status_code=400, content={"error": "Missing stripe-signature header"})

    try:
        event = payments.parse_webhook_event(payload, signature)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe webhook signature verification failed: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid signature"})
    except ValueError as e:
        logger.warning(f"Malformed Stripe webhook body: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid payload"})
    except payments.PaymentsNotConfigured as e:
        logger.error(f"Stripe webhook received but not configured: {e}")
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    logger.info(f"Stripe event {event.get('id')} ({event['type']})")
    try:
        await run_in_threadpool(order_service.process_stripe_event, db, event)
    except Exception:
        logger.exception(f"Stripe webhook handler failed for event {event.get('id')}")
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    return {"received": True}
