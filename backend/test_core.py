"""Money math, rate limiting, logging, error tracking, health and response headers."""
import logging

import pytest
from sqlalchemy.exc import OperationalError

from greenleaf.api.deps import get_db
from greenleaf.core import error_tracking, log_config, rate_limiter
from greenleaf.core.config import settings
from greenleaf.core.log_config import RedactingFilter, redact
from greenleaf.core.rate_limiter import RateLimiter
from greenleaf.db.init_db import create_embedding_index
from greenleaf.main import app
from greenleaf.services import cart_service, identity, order_service, payments
from greenleaf.services.pricing import format_money, subtotal_cents


class TestPricing:
    @pytest.mark.parametrize("grams,price,cents", [
        (3.5, "12.50", 4375),
        (1, "9.99", 999),
        (0.5, "10.01", 501),   # 500.5 rounds half up
        (0.5, "0.03", 2),      # 1.5 rounds half up
        (28, "18.00", 50400),
        (1.1, "3", 330),       # no float noise: 1.1 * 3 * 100 == 330
    ])
    def test_subtotal_cents(self, grams, price, cents):
        assert subtotal_cents(grams, price) == cents

    def test_format_money(self):
        assert format_money(0) == "$0.00"
        assert format_money(4375) == "$43.75"
        assert format_money(123456789) == "$1,234,567.89"


class TestRateLimiter:
    def test_window(self):
        limiter = RateLimiter(requests=2, window=60, name="test")

        assert limiter.is_allowed("a") == (True, 1)
        assert limiter.is_allowed("a") == (True, 0)
        assert limiter.is_allowed("a") == (False, 0)
        assert limiter.is_allowed("b") == (True, 1)

        limiter.reset()
        assert limiter.is_allowed("a") == (True, 1)

    def test_expired_requests_free_the_window(self, monkeypatch):
        clock = [1000.0]
        monkeypatch.setattr(rate_limiter.time, "time", lambda: clock[0])
        limiter = RateLimiter(requests=1, window=60)

        assert limiter.is_allowed("a")[0] is True
        assert limiter.is_allowed("a")[0] is False
        clock[0] += 61
        assert limiter.is_allowed("a")[0] is True

    def test_global_middleware(self, client, monkeypatch):
        monkeypatch.setattr(rate_limiter.rate_limiter, "requests", 2)

        first = client.get("/api/strains/effects")
        assert first.headers["x-ratelimit-limit"] == "2"
        assert first.headers["x-ratelimit-remaining"] == "1"
        client.get("/api/strains/effects")

        blocked = client.get("/api/strains/effects")
        assert blocked.status_code == 429
        assert blocked.headers["retry-after"] == "60"

        # health checks are never limited
        assert client.get("/api/health").status_code == 200


class TestLogging:
    @pytest.mark.parametrize("secret", [
        "Bearer eyJhbGciOiJSUzI1NiJ9.payload.sig",
        "sk_live_abc123XYZ",
        "whsec_abc123",
        "gsk_abc123",
        "buyer@example.com",
    ])
    def test_redact(self, secret):
        assert secret not in redact(f"calling provider with {secret} now")

    def test_filter_rewrites_record(self):
        record = logging.LogRecord("greenleaf", logging.INFO, __file__, 1, "email to %s", ("a@b.co",), None)

        assert RedactingFilter().filter(record) is True
        assert record.getMessage() == "email to [REDACTED]"

    def test_services_log_to_domain_loggers(self):
        assert cart_service.logger is log_config.cart_logger
        assert order_service.logger is log_config.order_logger
        assert order_service.payment_logger is log_config.payment_logger
        assert payments.logger.name == "greenleaf.payment"
        assert identity.logger.name == "greenleaf.auth"



class TestErrorTracking:
    def test_scrub_drops_credentials(self):
        event = {"request": {"headers": {
            "Authorization": "Bearer eyJ.token.sig",
            "cookie": "__session=abc",
            "User-Agent": "pytest",
        }}}

        scrubbed = error_tracking.scrub_event(event, {})

        assert scrubbed["request"]["headers"] == {"User-Agent": "pytest"}

    def test_scrub_without_request(self):
        assert error_tracking.scrub_event({"message": "boom"}, {}) == {"message": "boom"}

    def test_disabled_without_dsn(self, monkeypatch):
        def unexpected(**kwargs):
            raise AssertionError("sentry must stay off without a DSN")

        monkeypatch.setattr(settings, "SENTRY_DSN", "")
        monkeypatch.setattr(error_tracking.sentry_sdk, "init", unexpected)
        assert error_tracking.configure_error_tracking() is False

    def test_enabled_with_dsn(self, monkeypatch):
        calls = []
        monkeypatch.setattr(settings, "SENTRY_DSN", "https://key@o1.ingest.sentry.io/1")
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        monkeypatch.setattr(error_tracking.sentry_sdk, "init", lambda **kwargs: calls.append(kwargs))

        assert error_tracking.configure_error_tracking() is True
        assert calls[0]["dsn"] == "https://key@o1.ingest.sentry.io/1"
        assert calls[0]["environment"] == "production"
        assert calls[0]["traces_sample_rate"] == 0.1
        assert calls[0]["before_send"] is error_tracking.scrub_event


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "timestamp" in body

    def test_database_down(self, client):
        class BrokenSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        app.dependency_overrides[get_db] = lambda: BrokenSession()

        response = client.get("/api/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"


def test_security_headers(client):
    response = client.get("/api/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "strict-transport-security" not in response.headers


def test_vector_index_only_on_postgres(engine):
    assert create_embedding_index(engine) is False
