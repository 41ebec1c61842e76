"""Hosted error tracking (Sentry). Disabled unless SENTRY_DSN is set."""
import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from greenleaf.core.config import settings

logger = logging.getLogger(__name__)

SCRUBBED_HEADERS = {"authorization", "cookie"}


def scrub_event(event, hint):
    """Drop credentials from the captured request before it leaves the process."""
    headers = (event.get("request") or {}).get("headers")
    if isinstance(headers, dict):
        for name in [h for h in headers if h.lower() in SCRUBBED_HEADERS]:
            del headers[name]
    return event


def configure_error_tracking() -> bool:
    if not settings.SENTRY_DSN:
        logger.info("SENTRY_DSN not configured - error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.1 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
        before_send=scrub_event,
        # Error log records become events, like unhandled exceptions
        integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
    )
    logger.info(f"Error tracking enabled ({settings.ENVIRONMENT})")
    return True
