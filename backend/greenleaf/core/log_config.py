"""Logging setup: levels, format, secret redaction and per-domain loggers."""
import logging
import re

from greenleaf.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_REDACTIONS = [
    (re.compile(r"Bearer\s+[A-Za-z0-9._\-]+"), "Bearer [REDACTED]"),
    (re.compile(r"\b(sk|rk|pk)_(live|test)_[A-Za-z0-9]+"), "[REDACTED]"),
    (re.compile(r"\bwhsec_[A-Za-z0-9]+"), "[REDACTED]"),
    (re.compile(r"\bgsk_[A-Za-z0-9]+"), "[REDACTED]"),
    (re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}"), "[REDACTED]"),
]


def redact(text: str) -> str:
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFilter(logging.Filter):
    """Masks API keys, session tokens and customer emails in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(getattr(h, "_greenleaf", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RedactingFilter())
        handler._greenleaf = True
        root.addHandler(handler)

    # Provider SDKs are chatty at DEBUG
    for noisy in ("httpx", "httpcore", "openai", "groq", "stripe", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


order_logger = logging.getLogger("greenleaf.orders")
cart_logger = logging.getLogger("greenleaf.cart")
payment_logger = logging.getLogger("greenleaf.payment")
admin_logger = logging.getLogger("greenleaf.admin")
auth_logger = logging.getLogger("greenleaf.auth")
