"""Shared fixtures: in-memory database, API client, identity and provider fakes."""
import os

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_greenleaf"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_greenleaf_test"
os.environ["GROQ_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["CLERK_SECRET_KEY"] = ""
os.environ["CLERK_JWT_KEY"] = ""

from decimal import Decimal

import numpy as np
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from budtender import embeddings as embeddings_module
from budtender import groq_client as groq_module
from greenleaf.api.deps import get_db, get_optional_user_id
from greenleaf.core.config import settings
from greenleaf.core.rate_limiter import ALL_LIMITERS
from greenleaf.db.base import Base
from greenleaf.db.session import enable_sqlite_foreign_keys
from greenleaf.main import app
from greenleaf.models import Inventory, Order, OrderItem, Strain
from greenleaf.services import identity

ADMIN_ID = "user_admin"
CUSTOMER_ID = "user_customer"


def vector(*weights):
    """Embedding-sized vector with the given leading components."""
    v = np.zeros(settings.EMBEDDING_DIMENSIONS)
    v[: len(weights)] = weights
    return v


def make_strain(
    db,
    name,
    strain_type="HYBRID",
    thc=20,
    cbd=0.1,
    effects=("relaxed",),
    flavors=("earthy",),
    description=None,
    quantity=50,
    price="10.00",
    embedding=None,
    slug=None,
):
    strain = Strain(
        name=name,
        slug=slug or name.lower().replace(" ", "-"),
        type=strain_type,
        thc_percent=thc,
        cbd_percent=cbd,
        effects=list(effects),
        flavors=list(flavors),
        description=description,
        embedding=embedding,
    )
    if quantity is not None:
        strain.inventory = Inventory(quantity=quantity, price_per_gram=Decimal(price))
    db.add(strain)
    db.commit()
    db.refresh(strain)
    return strain


def make_order(db, status="PENDING", session_id="cs_test_1", user_id=None, items=(), email=None):
    """items: (strain, grams, price_per_gram) tuples."""
    order_items = [
        OrderItem(
            strain_id=strain.id,
            strain_name=strain.name,
            grams=grams,
            price_per_gram=Decimal(price),
            price_cents=int(round(grams * float(price) * 100)),
        )
        for strain, grams, price in items
    ]
    order = Order(
        stripe_session_id=session_id,
        status=status,
        total_cents=sum(i.price_cents for i in order_items),
        user_id=user_id,
        email=email,
        items=order_items,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


class FakeEmbeddingClient:
    """Deterministic embeddings: known texts map to fixed vectors."""

    def __init__(self, vectors=None, default=None):
        self.vectors = vectors or {}
        self.default = default if default is not None else vector(1.0)
        self.calls = []

    def is_available(self):
        return True

    def embed_query(self, text):
        self.calls.append(text)
        return self.vectors.get(text, self.default)

    def embed_documents(self, texts):
        return [self.embed_query(t) for t in texts]


class FakeGroqClient:
    def __init__(self, chunks=("Hello", " there"), error=None):
        self.chunks = list(chunks)
        self.error = error
        self.messages = None

    def is_available(self):
        return True

    def stream(self, messages):
        self.messages = messages
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error

    def complete(self, messages):
        self.messages = messages
        return "".join(self.chunks)


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    for limiter in ALL_LIMITERS:
        limiter.reset()
    yield
    for limiter in ALL_LIMITERS:
        limiter.reset()


@pytest.fixture(autouse=True)
def no_provider_singletons(monkeypatch):
    """Tests opt in to fake providers; nothing reaches a real API."""
    monkeypatch.setattr(embeddings_module, "_embedding_client", embeddings_module.EmbeddingClient(api_key=""))
    monkeypatch.setattr(groq_module, "_groq_client", groq_module.GroqClient(api_key=""))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in():
    """sign_in("user_x") makes subsequent requests come from that Clerk user."""

    def _sign_in(user_id):
        app.dependency_overrides[get_optional_user_id] = lambda: user_id

    return _sign_in


@pytest.fixture
def admin(sign_in, monkeypatch):
    monkeypatch.setattr(identity, "is_admin", lambda user_id: user_id == ADMIN_ID)
    sign_in(ADMIN_ID)
    return ADMIN_ID


@pytest.fixture
def fake_embedder(monkeypatch):
    fake = FakeEmbeddingClient()
    monkeypatch.setattr(embeddings_module, "_embedding_client", fake)
    return fake


@pytest.fixture
def fake_groq(monkeypatch):
    fake = FakeGroqClient()
    monkeypatch.setattr(groq_module, "_groq_client", fake)
    return fake


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling Resend."""
    from greenleaf.services import email_service

    outbox = []

    def fake_send(to, subject, html):
        outbox.append({"to": to, "subject": subject, "html": html})
        return f"email_{len(outbox)}"

    monkeypatch.setattr(email_service, "send_email", fake_send)
    return outbox
