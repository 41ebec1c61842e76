"""Render transactional emails with sample data. Development only."""
from datetime import datetime, timezone
from types import SimpleNamespace

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse, JSONResponse

from greenleaf.core.config import settings
from greenleaf.services import email_service

router = APIRouter()

TEMPLATES = {
    "order-confirmation": email_service.render_order_confirmation,
    "order-shipped": email_service.render_order_shipped,
}


def sample_order():
    items = [
        SimpleNamespace(id=1, strain_name="Blue Dream", grams=7, price_per_gram=15, price_cents=10500),
        SimpleNamespace(id=2, strain_name="OG Kush", grams=3.5, price_per_gram=12, price_cents=4200),
        SimpleNamespace(id=3, strain_name=None, grams=1, price_per_gram=3, price_cents=300),
    ]
    return SimpleNamespace(
        id=1234,
        email="customer@example.com",
        status="PAID",
        total_cents=15000,
        created_at=datetime.now(timezone.utc),
        items=items,
    )


@router.get("")
def preview_email(template: str = Query("order-confirmation")):
    if settings.ENVIRONMENT != "development":
        return JSONResponse(status_code=403, content={"error": "Not available in production"})

    render = TEMPLATES.get(template, email_service.render_order_confirmation)
    _, html = render(sample_order())
    return HTMLResponse(html)
