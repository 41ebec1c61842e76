"""Application configuration.

Environment variables override all defaults. A local `backend/.env` is loaded
for development. Production fails fast when the Stripe webhook secret is missing,
because an unverifiable webhook would mark orders paid for anyone.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

    # Database (PostgreSQL with pgvector in production, SQLite for local dev)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./greenleaf.db")

    # Public storefront URL, used for Stripe redirect URLs
    APP_URL: str = os.getenv("APP_URL", "http://localhost:3000")

    CORS_ORIGINS: List[str] = _split(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )

    # Chat completion (Groq)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "llama-3.3-70b-versatile")
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "1024"))
    CHAT_CONTEXT_STRAINS: int = 5

    # Embeddings (OpenAI)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_DIMENSIONS: int = 1536
    EMBEDDING_THROTTLE_SECONDS: float = float(os.getenv("EMBEDDING_THROTTLE_SECONDS", "0.1"))

    # Payments (Stripe)
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_CURRENCY: str = "usd"
    if not STRIPE_WEBHOOK_SECRET and ENVIRONMENT == "production":
        raise ValueError("STRIPE_WEBHOOK_SECRET must be set in production environment.")

    # Transactional email (Resend)
    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "GreenLeaf <orders@greenleaf.com>")

    # Identity (Clerk)
    CLERK_SECRET_KEY: str = os.getenv("CLERK_SECRET_KEY", "")
    CLERK_API_URL: str = os.getenv("CLERK_API_URL", "https://api.clerk.com/v1")
    # PEM public key from the Clerk dashboard, "\n" escapes allowed
    CLERK_JWT_KEY: str = os.getenv("CLERK_JWT_KEY", "").replace("\\n", "\n")
    CLERK_AUTHORIZED_PARTIES: List[str] = _split(os.getenv("CLERK_AUTHORIZED_PARTIES", ""))
    SESSION_COOKIE: str = "__session"
    CART_COOKIE: str = "cart_session"

    # Hosted error tracking (Sentry), off when empty
    SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")

    # Rate limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    STRICT_RATE_LIMIT_REQUESTS: int = int(os.getenv("STRICT_RATE_LIMIT_REQUESTS", "5"))
    CHECKOUT_RATE_LIMIT_REQUESTS: int = int(os.getenv("CHECKOUT_RATE_LIMIT_REQUESTS", "3"))

    # Catalog rules
    LOW_STOCK_THRESHOLD: int = 10
    MIN_CART_GRAMS: float = 0.5
    MAX_CART_GRAMS: float = 28


settings = Settings()
