# Overview: Pytest coverage for the HTTP surface: auth, envelopes and the checkout flow.

from datetime import timedelta

import pytest

from cinema import create_app
from cinema.models import Employee, SessionToken
from cinema.services import token_service
from cinema.time_utils import utcnow

from conftest import BUYER_CPF, auth_headers


# =============================================================================
# AUTHENTICATION AND ROLES
# =============================================================================


class TestAuthentication:

    def test_health_is_public(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/sessions"),
            ("GET", "/api/sessions/1/seats"),
            ("POST", "/api/seat-reservations"),
            ("POST", "/api/seat-reservations/release"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales/1"),
            ("POST", "/api/sales/1/finalize"),
            ("POST", "/api/discounts"),
            ("POST", "/api/tickets"),
            ("POST", "/api/inventory"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["success"] is False

    def test_revoked_token(self, client, db_session, company_a, cashier_a):
        _, token = token_service.issue_token(db_session, company_a.id, cashier_a.cpf)
        token_service.revoke_token(db_session, token)

        resp = client.post("/api/sales", json={}, headers=auth_headers(token))
        assert resp.status_code == 401

    def test_expired_token(self, client, db_session, company_a, cashier_a):
        record, token = token_service.issue_token(db_session, company_a.id, cashier_a.cpf)
        record.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        resp = client.post("/api/sales", json={}, headers=auth_headers(token))
        assert resp.status_code == 401

    def test_deactivated_employee(self, client, db_session, cashier_a, cashier_headers):
        cashier_a.is_active = False
        db_session.commit()

        resp = client.post("/api/sales", json={}, headers=cashier_headers)
        assert resp.status_code == 401

    def test_token_is_stored_hashed(self, db_session, company_a, cashier_a):
        record, token = token_service.issue_token(db_session, company_a.id, cashier_a.cpf)
        assert record.token_hash != token
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0

    def test_cashier_cannot_create_discount(self, client, cashier_headers):
        resp = client.post("/api/discounts", json={}, headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.json["required_roles"] == ["MANAGER", "ADMIN"]

    def test_cashier_cannot_refund(self, client, cashier_headers):
        resp = client.post("/api/tickets/1/refund", json={"reason": "x"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cors_header_for_allowed_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


# =============================================================================
# ENVELOPES
# =============================================================================


class TestEnvelopes:

    def test_validation_error(self, client, cashier_headers, screening_a):
        resp = client.post(
            "/api/seat-reservations",
            json={"session_id": screening_a.id, "seat_codes": [], "reservation_token": "tok1"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.json == {"success": False, "message": "seat_codes must be a non-empty list"}

    def test_not_found(self, client, cashier_headers):
        resp = client.get("/api/sales/9999", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Sale not found"

    def test_conflict_carries_details(self, client, cashier_headers, screening_a):
        payload = {"session_id": screening_a.id, "seat_codes": ["A1", "A2"], "reservation_token": "tok1"}
        assert client.post("/api/seat-reservations", json=payload, headers=cashier_headers).status_code == 201

        resp = client.post(
            "/api/seat-reservations",
            json={"session_id": screening_a.id, "seat_codes": ["A1"], "reservation_token": "tok2"},
            headers=cashier_headers,
        )
        assert resp.status_code == 409
        assert resp.json["success"] is False
        assert resp.json["conflicts"] == ["A1"]
        assert resp.json["reserved"] == []

    def test_other_tenant_sees_nothing(self, client, db_session, company_b, screening_a):
        employee = Employee(company_id=company_b.id, cpf="33333333333", name="Caixa B", role="CASHIER")
        db_session.add(employee)
        db_session.commit()
        _, token = token_service.issue_token(db_session, company_b.id, employee.cpf)

        resp = client.get(f"/api/sessions/{screening_a.id}/seats", headers=auth_headers(token))
        assert resp.status_code == 404


# =============================================================================
# CHECKOUT FLOW
# =============================================================================


class TestCheckoutFlow:

    def test_reserve_sell_discount_finalize(self, client, cashier_headers, manager_headers, screening_a):
        resp = client.post("/api/seat-reservations", json={
            "session_id": screening_a.id,
            "seat_codes": ["a1", "A2"],
            "reservation_token": "tok1",
        }, headers=cashier_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["reserved"] == ["A1", "A2"]

        now = utcnow()
        resp = client.post("/api/discounts", json={
            "code": "PROMO10",
            "discount_type": "PERCENT",
            "discount_value": 1000,
            "valid_from": (now - timedelta(days=1)).isoformat() + "Z",
            "valid_to": (now + timedelta(days=1)).isoformat() + "Z",
        }, headers=manager_headers)
        assert resp.status_code == 201

        resp = client.post("/api/sales", json={"buyer_cpf": BUYER_CPF}, headers=cashier_headers)
        assert resp.status_code == 201
        sale_id = resp.json["data"]["id"]

        for code in ("A1", "A2"):
            resp = client.post(f"/api/sales/{sale_id}/items", json={
                "kind": "TICKET",
                "session_id": screening_a.id,
                "seat_code": code,
                "reservation_token": "tok1",
            }, headers=cashier_headers)
            assert resp.status_code == 201
        assert resp.json["data"]["sale"]["sub_total_cents"] == 6000

        resp = client.post(f"/api/sales/{sale_id}/discounts", json={"code": "PROMO10"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["discount_total_cents"] == 600
        assert resp.json["data"]["grand_total_cents"] == 5400

        resp = client.post(f"/api/sales/{sale_id}/discounts", json={"code": "PROMO10"}, headers=cashier_headers)
        assert resp.status_code == 409

        resp = client.post(f"/api/sales/{sale_id}/finalize", json={
            "payments": [{"method": "CASH", "amount_cents": 5000}],
        }, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Insufficient payment. Required: 54, Received: 50"

        resp = client.get(f"/api/sales/{sale_id}", headers=cashier_headers)
        assert resp.json["data"]["sale"]["status"] == "OPEN"
        assert resp.json["data"]["payments"] == []

        resp = client.post(f"/api/sales/{sale_id}/finalize", json={
            "payments": [{"method": "CASH", "amount_cents": 5400}],
        }, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert resp.json["data"]["sale"]["status"] == "FINALIZED"
        assert len(resp.json["data"]["tickets"]) == 2

        resp = client.get(f"/api/sessions/{screening_a.id}/seats", headers=cashier_headers)
        assert resp.json["data"]["summary"] == {"total": 10, "available": 8, "reserved": 0, "sold": 2}

    def test_sale_cashier_is_the_caller(self, client, cashier_a, cashier_headers):
        resp = client.post("/api/sales", json={}, headers=cashier_headers)
        assert resp.json["data"]["cashier_cpf"] == cashier_a.cpf

    def test_release_twice_over_http(self, client, cashier_headers, screening_a):
        client.post("/api/seat-reservations", json={
            "session_id": screening_a.id,
            "seat_codes": ["B1"],
            "reservation_token": "tok9",
        }, headers=cashier_headers)

        first = client.post("/api/seat-reservations/release", json={"reservation_token": "tok9"}, headers=cashier_headers)
        second = client.post("/api/seat-reservations/release", json={"reservation_token": "tok9"}, headers=cashier_headers)

        assert first.json["data"]["released"] == 1
        assert second.status_code == 200
        assert second.json["data"]["released"] == 0

    def test_product_sale_and_cancel(self, client, cashier_headers, manager_headers):
        resp = client.post("/api/inventory", json={
            "sku": "soda-m",
            "name": "Refrigerante medio",
            "unit_price_cents": 900,
            "qty_on_hand": 10,
        }, headers=manager_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["sku"] == "SODA-M"

        sale_id = client.post("/api/sales", json={}, headers=cashier_headers).json["data"]["id"]
        resp = client.post(f"/api/sales/{sale_id}/items", json={
            "kind": "PRODUCT", "sku": "SODA-M", "quantity": 2,
        }, headers=cashier_headers)
        assert resp.status_code == 201

        resp = client.post(f"/api/sales/{sale_id}/cancel", json={"reason": "Customer left"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["sale"]["status"] == "CANCELED"

        resp = client.post(f"/api/sales/{sale_id}/items", json={
            "kind": "PRODUCT", "sku": "SODA-M", "quantity": 1,
        }, headers=cashier_headers)
        assert resp.status_code == 400


# =============================================================================
# CATALOG MANAGEMENT
# =============================================================================


class TestManagement:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("PUT", "/api/discounts/PROMO10"),
            ("PATCH", "/api/discounts/PROMO10/deactivate"),
            ("PATCH", "/api/inventory/POPCORN-L/deactivate"),
            ("PATCH", "/api/inventory/POPCORN-L/activate"),
            ("POST", "/api/inventory/POPCORN-L/adjust"),
        ],
    )
    def test_cashier_forbidden(self, client, cashier_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_discount_lifecycle(self, client, manager_headers, make_discount):
        make_discount("PROMO10", max_uses=5)

        resp = client.put("/api/discounts/promo10", json={"max_uses": 20, "description": "Weekend"}, headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["max_uses"] == 20
        assert resp.json["data"]["description"] == "Weekend"

        resp = client.patch("/api/discounts/PROMO10/deactivate", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["is_active"] is False

        resp = client.post("/api/discounts/validate", json={"code": "PROMO10", "sub_total_cents": 6000}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Discount code is inactive"

        resp = client.patch("/api/discounts/NOPE/deactivate", headers=manager_headers)
        assert resp.status_code == 404

    def test_inventory_activation_and_adjustment(self, client, manager_headers, cashier_headers, popcorn_a):
        resp = client.patch("/api/inventory/popcorn-l/deactivate", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["is_active"] is False

        sale_id = client.post("/api/sales", json={}, headers=cashier_headers).json["data"]["id"]
        resp = client.post(f"/api/sales/{sale_id}/items", json={
            "kind": "PRODUCT", "sku": "POPCORN-L", "quantity": 1,
        }, headers=cashier_headers)
        assert resp.status_code == 404

        assert client.patch("/api/inventory/POPCORN-L/activate", headers=manager_headers).status_code == 200

        resp = client.post("/api/inventory/POPCORN-L/adjust", json={"delta": -2, "reason": "damage"}, headers=manager_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["qty_after"] == 3

        resp = client.post("/api/inventory/POPCORN-L/adjust", json={"delta": -9, "reason": "THEFT"}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["resulting_stock"] == -6

    def test_remove_discount_from_sale(self, client, cashier_headers, make_discount, popcorn_a):
        make_discount("PROMO10")
        sale_id = client.post("/api/sales", json={}, headers=cashier_headers).json["data"]["id"]
        client.post(f"/api/sales/{sale_id}/items", json={
            "kind": "PRODUCT", "sku": "POPCORN-L", "quantity": 2,
        }, headers=cashier_headers)
        resp = client.post(f"/api/sales/{sale_id}/discounts", json={"code": "PROMO10"}, headers=cashier_headers)
        assert resp.json["data"]["grand_total_cents"] == 4500

        resp = client.delete(f"/api/sales/{sale_id}/discounts/promo10", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["grand_total_cents"] == 5000

        resp = client.delete(f"/api/sales/{sale_id}/discounts/PROMO10", headers=cashier_headers)
        assert resp.status_code == 404


class TestAppConfig:

    def test_unknown_usage_mode_fails_at_startup(self):
        with pytest.raises(ValueError, match="DISCOUNT_USAGE_COUNTED_AT"):
            create_app({
                'TESTING': True,
                'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
                'DISCOUNT_USAGE_COUNTED_AT': 'on_finalize',
            })

    def test_usage_mode_is_normalized(self, app):
        assert app.config['DISCOUNT_USAGE_COUNTED_AT'] == 'FINALIZE'
