"""Admin back-office: access control, strains, inventory and orders."""
import pytest

from greenleaf.models import Inventory, OrderItem, Strain
from greenleaf.services import identity
from conftest import ADMIN_ID, CUSTOMER_ID, make_order, make_strain, vector


class TestAccess:
    def test_anonymous(self, client):
        assert client.get("/api/admin/stats").status_code == 401

    def test_customer(self, client, admin, sign_in):
        sign_in(CUSTOMER_ID)
        response = client.get("/api/admin/stats")
        assert response.status_code == 403
        assert response.json()["detail"] == "You must be an admin to perform this action"

    def test_identity_provider_down(self, client, sign_in, monkeypatch):
        def unreachable(user_id):
            raise identity.IdentityProviderError("timeout")

        monkeypatch.setattr(identity, "is_admin", unreachable)
        sign_in(ADMIN_ID)
        assert client.get("/api/admin/stats").status_code == 502


def test_stats(client, db, admin):
    a = make_strain(db, "A", quantity=5)
    b = make_strain(db, "B", quantity=40)
    make_order(db, "PAID", "cs_1", items=[(a, 1, "10.00")])
    make_order(db, "FULFILLED", "cs_2", items=[(b, 2, "10.00")])
    make_order(db, "PENDING", "cs_3", items=[(b, 5, "10.00")])
    make_order(db, "CANCELLED", "cs_4", items=[(b, 7, "10.00")])

    assert client.get("/api/admin/stats").json() == {
        "total_strains": 2,
        "total_inventory": 45,
        "total_orders": 4,
        "total_revenue": 3000,
        "low_stock_count": 1,
    }


class TestStrains:
    payload = {
        "name": "Wedding Cake",
        "slug": "wedding-cake",
        "type": "INDICA",
        "thc_percent": 24.5,
        "effects": ["relaxed"],
        "flavors": ["vanilla"],
    }

    def test_create_starts_with_empty_inventory(self, client, db, admin):
        response = client.post("/api/admin/strains", json=self.payload)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "wedding-cake"
        assert body["type"] == "INDICA"
        assert body["inventory"] == {"quantity": 0, "price_per_gram": 0.0}
        assert body["in_stock"] is False

    def test_duplicate_slug(self, client, db, admin):
        client.post("/api/admin/strains", json=self.payload)
        response = client.post("/api/admin/strains", json=self.payload)
        assert response.status_code == 409
        assert response.json()["detail"] == "A strain with this slug already exists"

    @pytest.mark.parametrize("field,value", [("slug", "Not A Slug"), ("type", "RUDERALIS"), ("thc_percent", 101)])
    def test_invalid(self, client, admin, field, value):
        assert client.post("/api/admin/strains", json={**self.payload, field: value}).status_code == 422

    def test_list_paginates_and_filters(self, client, db, admin):
        for i in range(3):
            make_strain(db, f"Indica {i}", strain_type="INDICA")
        make_strain(db, "Sativa", strain_type="SATIVA")

        body = client.get("/api/admin/strains", params={"per_page": 2, "type": "INDICA"}).json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert [s["name"] for s in body["strains"]] == ["Indica 0", "Indica 1"]

        found = client.get("/api/admin/strains", params={"search": "sat"}).json()
        assert [s["name"] for s in found["strains"]] == ["Sativa"]

    def test_update_clears_embedding_when_text_changes(self, client, db, admin):
        strain = make_strain(db, "Blue Dream", embedding=vector(1))

        response = client.patch(f"/api/admin/strains/{strain.id}", json={"image_url": "https://img/x.jpg"})
        assert response.status_code == 200
        db.expire_all()
        assert db.get(Strain, strain.id).embedding is not None

        client.patch(f"/api/admin/strains/{strain.id}", json={"description": "Now sweeter."})
        db.expire_all()
        assert db.get(Strain, strain.id).embedding is None

    def test_resent_unchanged_fields_keep_embedding(self, client, db, admin):
        strain = make_strain(db, "Blue Dream", thc=22.1, cbd=0.1, embedding=vector(1))

        response = client.patch(
            f"/api/admin/strains/{strain.id}",
            json={"name": "Blue Dream", "thc_percent": 22.1, "cbd_percent": 0.1},
        )

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Strain, strain.id).embedding is not None

    def test_update_slug_conflict(self, client, db, admin):
        make_strain(db, "Taken")
        strain = make_strain(db, "Mine")

        response = client.patch(f"/api/admin/strains/{strain.id}", json={"slug": "taken"})
        assert response.status_code == 409

    def test_delete_keeps_order_history(self, client, db, admin):
        strain = make_strain(db, "Gone")
        order = make_order(db, "PAID", "cs_1", items=[(strain, 1, "10.00")])

        assert client.delete(f"/api/admin/strains/{strain.id}").status_code == 204
        assert client.get(f"/api/admin/strains/{strain.id}").status_code == 404

        db.expire_all()
        assert db.query(Inventory).count() == 0
        item = db.query(OrderItem).filter(OrderItem.order_id == order.id).one()
        assert item.strain_id is None
        assert item.strain_name == "Gone"

    def test_missing(self, client, admin):
        assert client.patch("/api/admin/strains/999", json={"name": "x"}).status_code == 404
        assert client.delete("/api/admin/strains/999").status_code == 404


class TestInventory:
    def test_list_and_low_stock_filter(self, client, db, admin):
        make_strain(db, "Plenty", quantity=50)
        make_strain(db, "Scarce", quantity=3)

        rows = client.get("/api/admin/inventory").json()
        assert [(r["strain_name"], r["low_stock"]) for r in rows] == [("Plenty", False), ("Scarce", True)]

        low = client.get("/api/admin/inventory", params={"low_stock_only": True}).json()
        assert [r["strain_name"] for r in low] == ["Scarce"]

    def test_upsert_partial_update(self, client, db, admin):
        strain = make_strain(db, "Blue Dream", quantity=5, price="10.00")

        response = client.put("/api/admin/inventory", json={"strain_id": strain.id, "quantity": 30})

        assert response.status_code == 200
        assert response.json()["quantity"] == 30
        assert response.json()["price_per_gram"] == 10.0

    def test_upsert_creates_missing_row(self, client, db, admin):
        strain = make_strain(db, "No Stock Row", quantity=None)

        body = client.put(
            "/api/admin/inventory", json={"strain_id": strain.id, "quantity": 12, "price_per_gram": 9.5}
        ).json()
        assert (body["quantity"], body["price_per_gram"]) == (12, 9.5)

    def test_upsert_validation(self, client, db, admin):
        strain = make_strain(db, "Blue Dream")
        assert client.put("/api/admin/inventory", json={"strain_id": strain.id, "quantity": -1}).status_code == 422
        assert client.put("/api/admin/inventory", json={"strain_id": 999, "quantity": 1}).status_code == 404

    def test_bulk_is_all_or_nothing(self, client, db, admin):
        a = make_strain(db, "A", quantity=1)
        b = make_strain(db, "B", quantity=1)

        ok = client.put("/api/admin/inventory/bulk", json=[
            {"strain_id": a.id, "quantity": 10},
            {"strain_id": b.id, "price_per_gram": 7},
        ])
        assert ok.json() == {"updated": 2}

        failed = client.put("/api/admin/inventory/bulk", json=[
            {"strain_id": a.id, "quantity": 99},
            {"strain_id": 999, "quantity": 1},
        ])
        assert failed.status_code == 404

        db.expire_all()
        assert db.query(Inventory).filter(Inventory.strain_id == a.id).one().quantity == 10


class TestOrders:
    def test_list_filter_by_status(self, client, db, admin):
        strain = make_strain(db, "Blue Dream")
        make_order(db, "PAID", "cs_1", items=[(strain, 1, "10.00")], email="a@example.com")
        make_order(db, "PENDING", "cs_2", items=[(strain, 1, "10.00")])

        body = client.get("/api/admin/orders", params={"status": "PAID"}).json()
        assert body["total"] == 1
        assert body["orders"][0]["email"] == "a@example.com"
        assert client.get("/api/admin/orders").json()["total"] == 2
        assert client.get("/api/admin/orders/999").status_code == 404

    def test_fulfilling_sends_shipped_email(self, client, db, admin, sent_emails):
        strain = make_strain(db, "Blue Dream")
        order = make_order(db, "PAID", "cs_1", items=[(strain, 1, "10.00")], email="a@example.com")

        response = client.patch(f"/api/admin/orders/{order.id}", json={"status": "FULFILLED"})

        assert response.status_code == 200
        assert response.json()["status"] == "FULFILLED"
        assert [e["subject"] for e in sent_emails] == [f"Your Order Has Shipped #{order.id:06d}"]

    def test_invalid_transition(self, client, db, admin, sent_emails):
        strain = make_strain(db, "Blue Dream")
        order = make_order(db, "PENDING", "cs_1", items=[(strain, 1, "10.00")])

        response = client.patch(f"/api/admin/orders/{order.id}", json={"status": "FULFILLED"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot change order status from PENDING to FULFILLED"
        assert sent_emails == []

    def test_cancel_does_not_email(self, client, db, admin, sent_emails):
        strain = make_strain(db, "Blue Dream")
        order = make_order(db, "PAID", "cs_1", items=[(strain, 1, "10.00")], email="a@example.com")

        assert client.patch(f"/api/admin/orders/{order.id}", json={"status": "CANCELLED"}).status_code == 200
        assert sent_emails == []

    def test_unknown_status(self, client, db, admin):
        strain = make_strain(db, "Blue Dream")
        order = make_order(db, "PAID", "cs_1", items=[(strain, 1, "10.00")])
        assert client.patch(f"/api/admin/orders/{order.id}", json={"status": "SHIPPED"}).status_code == 422
