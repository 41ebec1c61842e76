"""
GreenLeaf Dispensary backend.

ARCHITECTURE:
- FastAPI: storefront, cart, checkout, orders, admin back-office
- PostgreSQL + pgvector: catalog, orders, strain embeddings (SQLite for local dev)
- Budtender: retrieval over strain embeddings + Groq chat completion, streamed as SSE
- Hosted providers: Clerk (identity), Stripe (payments), Resend (email), OpenAI (embeddings)
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from greenleaf.api.routes import strains, cart, checkout, orders, chat, webhooks, admin, health, email_preview
from greenleaf.core.audit import AuditLog
from greenleaf.core.config import settings
from greenleaf.core.error_tracking import configure_error_tracking
from greenleaf.core.log_config import configure_logging
from greenleaf.core.rate_limiter import RateLimitMiddleware
from greenleaf.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    configure_error_tracking()
    logger.info(f"Starting GreenLeaf API ({settings.ENVIRONMENT})")
    init_db()
    yield
    logger.info("GreenLeaf API stopped")


app = FastAPI(
    title="GreenLeaf Dispensary API",
    description="Storefront, checkout, admin back-office and AI budtender.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
)

app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.ENVIRONMENT == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.middleware("http")
async def log_api_calls(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    AuditLog.log_api_call(
        endpoint=request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration_ms=(time.perf_counter() - started) * 1000,
        ip_address=request.client.host if request.client else "",
    )
    return response


app.include_router(strains.router, prefix="/api/strains", tags=["strains"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(checkout.router, prefix="/api/checkout", tags=["checkout"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(chat.router, prefix="/api/chat", tags=["budtender"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["webhooks"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(health.router, prefix="/api/health", tags=["health"])
app.include_router(email_preview.router, prefix="/api/email-preview", tags=["dev"])
