import uuid
from datetime import timedelta
from decimal import Decimal

from mall_app.core.date_helper import today
from mall_app.core.validators import create_access_token
from mall_app.models.enums import PropertyStatus
from tests.factories import auth, make_lease, make_payment, make_property, set_rate


class TestAuthentication:
    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_missing_token(self, client):
        response = await client.get("/v1/properties")
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "not_authenticated"
        assert body["success"] is False
        assert body["retryable"] is False

    async def test_garbage_token(self, client):
        response = await client.get(
            "/v1/properties", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["reason"] == "Invalid token"

    async def test_unknown_profile(self, client):
        token = create_access_token(uuid.uuid4())
        response = await client.get(
            "/v1/profiles/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_cookie_token_accepted(self, client, people):
        token = create_access_token(people["tenant"].id)
        client.cookies.set("access_token", token)
        response = await client.get("/v1/profiles/me")
        assert response.status_code == 200
        assert response.json()["id"] == str(people["tenant"].id)


class TestErrorEnvelope:
    async def test_forbidden(self, client, people):
        response = await client.put(
            "/v1/currency/rate",
            json={"exchange_rate_usd_to_ugx": "3800"},
            headers=auth(people["landlord"]),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    async def test_not_found_for_other_landlords_property(self, client, db, people):
        prop = await make_property(db, people["other_landlord"])
        response = await client.get(
            f"/v1/properties/{prop.id}", headers=auth(people["landlord"])
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_request_validation(self, client, people):
        response = await client.post(
            "/v1/properties",
            json={"name": "No rent", "location": "Kampala", "unit_number": "A1"},
            headers=auth(people["landlord"]),
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert any("rent_amount" in detail["loc"] for detail in body["details"])

    async def test_lifecycle_conflict(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"])
        response = await client.delete(
            f"/v1/properties/{prop.id}", headers=auth(people["landlord"])
        )
        assert response.status_code == 409
        assert response.json()["error"] == "lifecycle_conflict"

    async def test_bad_rate_is_a_configuration_error(self, client, people):
        response = await client.put(
            "/v1/currency/rate",
            json={"exchange_rate_usd_to_ugx": "0"},
            headers=auth(people["admin"]),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "currency_configuration_error"


class TestCurrencyEndpoints:
    async def test_settings_default_before_any_update(self, client, people):
        response = await client.get("/v1/currency/settings", headers=auth(people["tenant"]))
        assert response.status_code == 200
        body = response.json()
        assert body["is_default"] is True
        assert Decimal(body["exchange_rate_usd_to_ugx"]) == Decimal("3700")

    async def test_convert_uses_stored_rate(self, client, db, people):
        await set_rate(db, "3800")
        response = await client.get(
            "/v1/currency/convert",
            params={"amount": "10", "from": "USD", "to": "UGX"},
            headers=auth(people["tenant"]),
        )
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["converted"]) == Decimal("38000")
        assert body["formatted"] == "UGX 38,000"

    async def test_format(self, client, people):
        response = await client.get(
            "/v1/currency/format",
            params={"amount": "1234.5", "currency": "USD"},
            headers=auth(people["tenant"]),
        )
        assert response.json()["formatted"] == "$1,234.50"

    async def test_superadmin_updates_rate(self, client, people):
        response = await client.put(
            "/v1/currency/rate",
            json={"exchange_rate_usd_to_ugx": "3825.5"},
            headers=auth(people["admin"]),
        )
        assert response.status_code == 200
        assert response.json()["updated_by"] == str(people["admin"].id)

    async def test_preferred_currency(self, client, people):
        response = await client.put(
            "/v1/profiles/me/currency",
            json={"currency": "UGX"},
            headers=auth(people["tenant"]),
        )
        assert response.status_code == 200
        assert response.json()["preferred_currency"] == "UGX"


class TestLeaseFlow:
    async def test_create_and_delete_over_http(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        headers = auth(people["landlord"])

        created = await client.post(
            "/v1/leases",
            json={
                "property_id": str(prop.id),
                "tenant_id": str(people["tenant"].id),
                "start_date": today().isoformat(),
                "end_date": (today() + timedelta(days=365)).isoformat(),
                "monthly_rent": "1500",
            },
            headers=headers,
        )
        assert created.status_code == 201
        lease_id = created.json()["id"]

        shown = await client.get(f"/v1/properties/{prop.id}", headers=headers)
        assert shown.json()["status"] == PropertyStatus.OCCUPIED.value

        deleted = await client.request(
            "DELETE",
            f"/v1/leases/{lease_id}",
            json={"reason": "early termination"},
            headers=headers,
        )
        assert deleted.status_code == 200

        shown = await client.get(f"/v1/properties/{prop.id}", headers=headers)
        assert shown.json()["status"] == PropertyStatus.AVAILABLE.value
        history = await client.get(
            f"/v1/properties/{prop.id}/lease-history", headers=headers
        )
        assert [row["reason"] for row in history.json()] == ["early termination"]

    async def test_end_before_start_rejected(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        response = await client.post(
            "/v1/leases",
            json={
                "property_id": str(prop.id),
                "tenant_id": str(people["tenant"].id),
                "start_date": today().isoformat(),
                "end_date": today().isoformat(),
                "monthly_rent": "1500",
            },
            headers=auth(people["landlord"]),
        )
        assert response.status_code == 422


class TestPaymentFlow:
    async def test_tenant_lists_own_payments_with_derived_status(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        lease = await make_lease(db, prop, people["tenant"])
        late = await make_payment(db, lease, due_date=today() - timedelta(days=1))

        response = await client.get("/v1/payments", headers=auth(people["tenant"]))
        assert response.status_code == 200
        rows = response.json()
        assert [row["id"] for row in rows] == [str(late.id)]
        assert rows[0]["status"] == "overdue"
        assert rows[0]["stored_status"] == "pending"

        other = await client.get("/v1/payments", headers=auth(people["other_tenant"]))
        assert other.json() == []

    async def test_submit_then_confirm(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        lease = await make_lease(db, prop, people["tenant"])
        payment = await make_payment(db, lease, amount=Decimal("1000"))

        submitted = await client.post(
            f"/v1/payments/{payment.id}/submit",
            json={"submitted_amount": "400", "payment_method": "bank_transfer"},
            headers=auth(people["tenant"]),
        )
        assert submitted.status_code == 200

        confirmed = await client.post(
            f"/v1/payments/{payment.id}/confirm",
            json={},
            headers=auth(people["landlord"]),
        )
        assert confirmed.status_code == 200
        body = confirmed.json()
        assert body["payment"]["status"] == "partial"
        assert Decimal(body["remaining"]) == Decimal("600")
        assert Decimal(body["remainder_payment"]["amount"]) == Decimal("600")


class TestPaymentMethodEndpoints:
    async def test_superadmin_configures_tenant_lists(self, client, people):
        created = await client.post(
            "/v1/payment-methods",
            json={
                "name": "Airtel Money",
                "method_type": "mobile_money",
                "details": {"instructions": "Merchant code 44120", "provider": "Airtel"},
            },
            headers=auth(people["admin"]),
        )
        assert created.status_code == 201
        method = created.json()
        assert method["details"]["provider"] == "Airtel"

        denied = await client.post(
            "/v1/payment-methods",
            json={"name": "Till", "method_type": "cash"},
            headers=auth(people["landlord"]),
        )
        assert denied.status_code == 403

        retired = await client.put(
            f"/v1/payment-methods/{method['id']}",
            json={"is_active": False},
            headers=auth(people["admin"]),
        )
        assert retired.json()["is_active"] is False

        listed = await client.get("/v1/payment-methods", headers=auth(people["tenant"]))
        assert listed.status_code == 200
        assert listed.json() == []

class TestDashboardEndpoint:
    async def test_stats_for_each_role(self, client, db, people):
        prop = await make_property(db, people["landlord"])
        await make_lease(db, prop, people["tenant"])
        for who, total in (("admin", 1), ("landlord", 1), ("other_landlord", 0)):
            response = await client.get("/v1/dashboard/stats", headers=auth(people[who]))
            assert response.status_code == 200
            assert response.json()["properties_total"] == total
