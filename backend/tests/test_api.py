"""
HTTP API tests.

Verifies:
- Unauthenticated requests return 401
- Role-gated routes return 403 for staff
- Checkout, catalog and customer flows
- Transaction and expense edits require the current user's password
- Export/import and manual backup endpoints
"""

import pytest

CONFIRM = {"X-Confirm-Password": "password"}


def _checkout(client, customer_id=None, quantity=3):
    return client.post("/api/sales", json={
        "customerId": customer_id,
        "items": [{
            "productId": "HH164-3243-0",
            "name": "FILTER(CARTRIDGE,OIL)",
            "price": 18.50,
            "costPrice": 13.00,
            "quantity": quantity,
        }],
    })


# =============================================================================
# ACCESS CONTROL
# =============================================================================


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/customers"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales"),
            ("GET", "/api/expenses"),
            ("GET", "/api/settings"),
            ("POST", "/api/settings/backup"),
            ("GET", "/api/reports/summary"),
            ("GET", "/api/data/export"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_session(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_health_is_public(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["collections"]["products"] == 29


class TestLogin:
    def test_login_and_me(self, client, state):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "password"})
        assert resp.status_code == 200
        assert "password" not in resp.get_json()["user"]

        me = client.get("/api/auth/me").get_json()["user"]
        assert me["username"] == "admin"
        assert me["role"] == "admin"

    def test_bad_credentials(self, client, state):
        assert client.post("/api/auth/login", json={"username": "admin"}).status_code == 400
        assert client.post("/api/auth/login", json={"username": "admin", "password": "x"}).status_code == 401

    def test_logout_ends_session(self, admin_client):
        assert admin_client.post("/api/auth/logout").status_code == 200
        assert admin_client.get("/api/products").status_code == 401


class TestRoles:
    def test_staff_cannot_export_or_manage_users(self, admin_client):
        resp = admin_client.post("/api/auth/users", json={
            "name": "Front Desk",
            "username": "desk",
            "password": "desk-pass",
            "role": "staff",
        })
        assert resp.status_code == 201
        assert "password" not in resp.get_json()

        admin_client.post("/api/auth/logout")
        assert admin_client.post("/api/auth/login", json={"username": "desk", "password": "desk-pass"}).status_code == 200

        assert admin_client.get("/api/data/export").status_code == 403
        assert admin_client.get("/api/auth/users").status_code == 403
        assert admin_client.get("/api/products").status_code == 200

    def test_duplicate_username_conflicts(self, admin_client):
        resp = admin_client.post("/api/auth/users", json={
            "name": "Another",
            "username": "manager",
            "password": "x",
            "role": "staff",
        })
        assert resp.status_code == 409

    def test_invalid_role_rejected(self, admin_client):
        resp = admin_client.post("/api/auth/users", json={
            "name": "Root",
            "username": "root",
            "password": "x",
            "role": "superuser",
        })
        assert resp.status_code == 400

    def test_cannot_delete_self(self, admin_client):
        assert admin_client.delete("/api/auth/users/1").status_code == 409


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCheckout:
    def test_walk_in_sale(self, admin_client):
        resp = _checkout(admin_client)
        assert resp.status_code == 201
        transaction = resp.get_json()["transaction"]
        assert transaction["customerId"] == "GUEST"
        assert transaction["totalAmount"] == 55.5

        product = admin_client.get("/api/products/HH164-3243-0").get_json()
        assert product["stock"] == 47

    def test_sale_to_customer_accrues_spend(self, admin_client):
        _checkout(admin_client, "C1", quantity=2)

        resp = admin_client.get("/api/customers/C1")
        body = resp.get_json()
        assert body["customer"]["totalSpent"] == 37.0
        assert len(body["transactions"]) == 1

    def test_sale_with_new_customer(self, admin_client):
        resp = admin_client.post("/api/sales", json={
            "newCustomer": {"name": "Jane Roe", "phone": "555-0199"},
            "items": [{"productId": "1J884-3708-0", "name": "CONNECTOR", "price": 5.25, "quantity": 4}],
        })
        assert resp.status_code == 201
        transaction = resp.get_json()["transaction"]
        assert transaction["customerName"] == "Jane Roe"

        customer = admin_client.get(f"/api/customers/{transaction['customerId']}").get_json()["customer"]
        assert customer["totalSpent"] == 21.0

    def test_rejected_cart_does_not_create_customer(self, admin_client):
        resp = admin_client.post("/api/sales", json={
            "newCustomer": {"name": "Jane Roe", "phone": "555-0199"},
            "items": [],
        })
        assert resp.status_code == 400
        assert admin_client.get("/api/customers").get_json()["count"] == 1

    def test_nan_price_rejected(self, admin_client):
        body = '{"customerId": "C1", "items": [{"productId": "HH164-3243-0", "name": "FILTER", "price": NaN, "quantity": 2}]}'
        resp = admin_client.post("/api/sales", data=body, content_type="application/json")
        assert resp.status_code == 400
        assert admin_client.get("/api/sales").get_json()["count"] == 0
        assert admin_client.get("/api/customers/C1").get_json()["customer"]["totalSpent"] == 0

    def test_fractional_quantity_rejected(self, admin_client):
        resp = admin_client.post("/api/sales", json={
            "items": [{"productId": "HH164-3243-0", "name": "FILTER", "price": 10, "quantity": 2.9}],
        })
        assert resp.status_code == 400
        assert admin_client.get("/api/products/HH164-3243-0").get_json()["stock"] == 50

    def test_empty_cart_rejected(self, admin_client):
        resp = admin_client.post("/api/sales", json={"items": []})
        assert resp.status_code == 400
        assert admin_client.get("/api/sales").get_json()["count"] == 0


# =============================================================================
# SECRET GATE
# =============================================================================


class TestSecretGate:
    def test_transaction_delete_requires_password(self, admin_client):
        tx_id = _checkout(admin_client).get_json()["transaction"]["id"]

        resp = admin_client.delete(f"/api/sales/{tx_id}", headers={"X-Confirm-Password": "wrong"})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Access denied: Invalid password."

        assert admin_client.delete(f"/api/sales/{tx_id}").status_code == 403
        assert admin_client.delete(f"/api/sales/{tx_id}", headers=CONFIRM).status_code == 200
        assert admin_client.get(f"/api/sales/{tx_id}").status_code == 404

        # Stock is not restored by the delete
        assert admin_client.get("/api/products/HH164-3243-0").get_json()["stock"] == 47

    def test_transaction_patch_with_secret_in_body(self, admin_client):
        tx_id = _checkout(admin_client).get_json()["transaction"]["id"]

        resp = admin_client.patch(f"/api/sales/{tx_id}", json={"customerName": "Cash Sale", "secret": "password"})
        assert resp.status_code == 200
        assert resp.get_json()["transaction"]["customerName"] == "Cash Sale"

    def test_expense_edit_requires_password(self, admin_client):
        resp = admin_client.post("/api/expenses", json={"description": "Tea", "amount": 3.5, "category": "Other"})
        assert resp.status_code == 201
        expense_id = resp.get_json()["id"]

        assert admin_client.patch(f"/api/expenses/{expense_id}", json={"amount": 4.0}).status_code == 403
        resp = admin_client.patch(f"/api/expenses/{expense_id}", json={"amount": 4.0}, headers=CONFIRM)
        assert resp.status_code == 200
        assert resp.get_json()["amount"] == 4.0

        assert admin_client.delete(f"/api/expenses/{expense_id}", headers=CONFIRM).status_code == 200
        assert admin_client.delete(f"/api/expenses/{expense_id}", headers=CONFIRM).status_code == 404

    def test_verify_endpoint(self, admin_client):
        assert admin_client.post("/api/auth/verify", json={"secret": "password"}).status_code == 200
        assert admin_client.post("/api/auth/verify", json={"secret": "guess"}).status_code == 403


# =============================================================================
# CATALOG AND CUSTOMERS
# =============================================================================


class TestCatalog:
    def test_create_product_defaults_cost(self, admin_client):
        resp = admin_client.post("/api/products", json={"name": "Gasket", "price": 8.0, "stock": 12})
        assert resp.status_code == 201
        assert resp.get_json()["costPrice"] == 6.0

    def test_validation_errors(self, admin_client):
        assert admin_client.post("/api/products", json={"price": 8.0}).status_code == 400
        assert admin_client.post("/api/products", json={"name": "X", "price": -1}).status_code == 400
        assert admin_client.post("/api/expenses", json={"description": "X", "amount": 1, "category": "Food"}).status_code == 400

    def test_bulk_import(self, admin_client):
        resp = admin_client.post("/api/products/bulk", json={"items": [
            {"name": "Washer", "price": 0.5, "stock": 500},
            {"name": "Spring", "price": 1.25, "stock": 80, "category": "Hardware"},
        ]})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["count"] == 2
        assert len({p["id"] for p in body["items"]}) == 2
        assert admin_client.get("/api/products").get_json()["count"] == 31

    def test_bulk_import_reports_bad_row(self, admin_client):
        resp = admin_client.post("/api/products/bulk", json={"items": [{"name": "Ok"}, {"price": 2}]})
        assert resp.status_code == 400
        assert admin_client.get("/api/products").get_json()["count"] == 29

    def test_update_and_delete_missing(self, admin_client):
        assert admin_client.put("/api/products/nope", json={"stock": 1}).status_code == 404
        assert admin_client.delete("/api/products/nope").status_code == 404

    def test_customer_search(self, admin_client):
        admin_client.post("/api/customers", json={"name": "Jane Roe", "phone": "555-0199"})
        items = admin_client.get("/api/customers?q=jane").get_json()["items"]
        assert [c["name"] for c in items] == ["Jane Roe"]


# =============================================================================
# SETTINGS, BACKUP AND DATA
# =============================================================================


class TestSettingsAndBackup:
    def test_update_settings_keeps_other_fields(self, admin_client):
        resp = admin_client.put("/api/settings", json={"storeName": "Corner Shop"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["storeName"] == "Corner Shop"
        assert body["footerMessage"] == "Thank you for your business! Please come again."

    def test_backup_flags_must_be_booleans(self, admin_client):
        resp = admin_client.put("/api/settings", json={"autoBackup": "false"})
        assert resp.status_code == 400
        assert admin_client.get("/api/settings").get_json()["autoBackup"] is False

    def test_manual_backup_requires_connection(self, admin_client, transport):
        resp = admin_client.post("/api/settings/backup")
        assert resp.status_code == 409
        assert resp.get_json()["ok"] is False
        assert transport.calls == []

        admin_client.put("/api/settings", json={"googleDriveConnected": True})
        resp = admin_client.post("/api/settings/backup")
        assert resp.status_code == 200
        assert resp.get_json()["lastBackupTime"]
        assert len(transport.calls) == 1

    def test_auto_backup_after_sale(self, admin_client, timers, transport):
        admin_client.put("/api/settings", json={"autoBackup": True, "googleDriveConnected": True})
        _checkout(admin_client)

        status = admin_client.get("/api/settings/backup").get_json()
        assert status["pending"] is True

        timers.advance(5)
        assert len(transport.calls) == 1
        assert transport.calls[0]["snapshot"]["transactions"][0]["totalAmount"] == 55.5


class TestData:
    def test_export_envelope(self, admin_client):
        body = admin_client.get("/api/data/export").get_json()
        assert body["version"] == "1.0"
        assert len(body["products"]) == 29
        assert "session" not in body

    def test_import_rejects_non_object(self, admin_client):
        resp = admin_client.post("/api/data/import", data="null", content_type="application/json")
        assert resp.status_code == 400
        assert resp.get_json() == {"ok": False, "error": "Invalid backup file"}

    def test_import_rejects_malformed_records(self, admin_client):
        resp = admin_client.post("/api/data/import", json={"products": [1, 2]})
        assert resp.status_code == 400
        assert resp.get_json() == {"ok": False, "error": "Invalid backup file"}
        assert admin_client.get("/api/products").get_json()["count"] == 29

    def test_import_replaces_present_collections(self, admin_client):
        resp = admin_client.post("/api/data/import", json={
            "products": [{"id": "X1", "name": "Restored", "price": 2.0, "costPrice": 1.0, "stock": 1}],
        })
        assert resp.status_code == 200

        items = admin_client.get("/api/products").get_json()["items"]
        assert [p["id"] for p in items] == ["X1"]
        assert admin_client.get("/api/customers").get_json()["count"] == 1


class TestReports:
    def test_summary_after_sale(self, admin_client):
        _checkout(admin_client)
        admin_client.post("/api/expenses", json={"description": "Tea", "amount": 5.5, "category": "Other"})

        body = admin_client.get("/api/reports/summary").get_json()
        assert body["totalRevenue"] == 55.5
        assert body["totalExpenses"] == 5.5
        assert body["currentBalance"] == 50.0

    def test_daybook_requires_day(self, admin_client):
        assert admin_client.get("/api/reports/daybook").status_code == 400
