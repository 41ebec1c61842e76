"""Order email rendering, Resend delivery and the development preview."""
from datetime import datetime, timezone

import pytest
import requests

from greenleaf.api.routes.email_preview import sample_order
from greenleaf.core.config import settings
from greenleaf.services import email_service


@pytest.fixture
def order():
    order = sample_order()
    order.created_at = datetime(2024, 3, 5, 15, 30, tzinfo=timezone.utc)
    return order


class TestRendering:
    def test_confirmation(self, order):
        subject, html = email_service.render_order_confirmation(order)

        assert subject == "Order Confirmed #001234"
        assert "Order Confirmed!" in html
        assert "#001234" in html
        assert "Tuesday, March 5, 2024" in html
        assert "Blue Dream" in html
        assert "3.5g @ $12.00/g" in html
        assert "$105.00" in html
        assert "$150.00" in html
        assert "Unknown Product" in html

    def test_shipped(self, order):
        subject, html = email_service.render_order_shipped(order)

        assert subject == "Your Order Has Shipped #001234"
        assert "Fulfilled" in html
        assert "Items in Your Order" in html
        assert "Order Total" in html
        assert "@ $" not in html

    def test_names_are_escaped(self, order):
        order.items[0].strain_name = "<script>alert(1)</script>"
        _, html = email_service.render_order_confirmation(order)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload or {"id": "re_msg_1"}
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._text is not None:
            raise requests.exceptions.JSONDecodeError("Expecting value", self._text, 0)
        return self._payload


class TestSendEmail:
    def test_not_configured(self, monkeypatch):
        def unexpected(*args, **kwargs):
            raise AssertionError("Resend must not be called without an API key")

        monkeypatch.setattr(email_service.requests, "post", unexpected)
        assert email_service.send_email("a@example.com", "Hi", "<p>Hi</p>") is None

    def test_posts_to_resend(self, monkeypatch):
        calls = []

        def fake_post(url, headers, json, timeout):
            calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
            return FakeResponse()

        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test_key")
        monkeypatch.setattr(email_service.requests, "post", fake_post)

        assert email_service.send_email("a@example.com", "Hi", "<p>Hi</p>") == "re_msg_1"
        assert calls[0]["url"] == settings.RESEND_API_URL
        assert calls[0]["headers"] == {"Authorization": "Bearer re_test_key"}
        assert calls[0]["json"] == {
            "from": settings.EMAIL_FROM,
            "to": ["a@example.com"],
            "subject": "Hi",
            "html": "<p>Hi</p>",
        }

    @pytest.mark.parametrize("failure", [
        lambda *a, **k: FakeResponse(status_code=422),
        lambda *a, **k: FakeResponse(text="<html>ok</html>"),
        lambda *a, **k: (_ for _ in ()).throw(requests.ConnectionError("refused")),
    ])
    def test_failures_return_none(self, monkeypatch, failure):
        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test_key")
        monkeypatch.setattr(email_service.requests, "post", failure)
        assert email_service.send_email("a@example.com", "Hi", "<p>Hi</p>") is None


class TestOrderEmails:
    def test_no_address(self, order, sent_emails):
        order.email = None
        assert email_service.send_order_confirmation(order) is None
        assert email_service.send_order_shipped(order) is None
        assert sent_emails == []

    def test_status_update_only_for_fulfilment(self, order, sent_emails):
        order.status = "FULFILLED"
        assert email_service.send_order_status_update(order, "PAID") == "email_1"

        order.status = "CANCELLED"
        assert email_service.send_order_status_update(order, "PAID") is None
        assert [e["subject"] for e in sent_emails] == ["Your Order Has Shipped #001234"]


class TestPreview:
    def test_hidden_outside_development(self, client):
        response = client.get("/api/email-preview")
        assert response.status_code == 403
        assert response.json() == {"error": "Not available in production"}

    @pytest.mark.parametrize("template,marker", [
        ("order-confirmation", "Order Confirmed!"),
        ("order-shipped", "Your Order Has Shipped!"),
        ("unknown", "Order Confirmed!"),
    ])
    def test_renders_in_development(self, client, monkeypatch, template, marker):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")

        response = client.get("/api/email-preview", params={"template": template})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert marker in response.text
