"""
HTTP API tests against the ASGI app with the test database session.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from sharepool.auth.jwt import COOKIE_NAME, create_access_token
from sharepool.db import get_db
from sharepool.main import app
from sharepool.models import LedgerEntryType, User, UserRole
from sharepool.services.ledger import record_ledger_entry


async def _make_user(db, username, role):
    user = User(
        username=username,
        password_hash="unused",
        role=role,
        display_name=username.title(),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    return user


@pytest_asyncio.fixture
async def client(seeded_db):
    async def _override_get_db():
        yield seeded_db

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def accountant_client(client, seeded_db):
    user = await _make_user(seeded_db, "accountant", UserRole.ACCOUNTANT)
    client.cookies.set(COOKIE_NAME, create_access_token(user.id, user.role.value))
    return client


@pytest_asyncio.fixture
async def admin_client(client, seeded_db):
    user = await _make_user(seeded_db, "boss", UserRole.ADMIN)
    client.cookies.set(COOKIE_NAME, create_access_token(user.id, user.role.value))
    return client


# ── public routes and auth ────────────────────────────────


class TestPublicRoutes:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/health/live")
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_ready_with_seeded_tiers(self, client):
        response = await client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["tiers"] == 5

    @pytest.mark.asyncio
    async def test_me_reports_permissions(self, accountant_client):
        response = await accountant_client.get("/api/auth/me")
        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "accountant"
        assert body["can_process_finance"] is True
        assert body["can_configure_tiers"] is False

    @pytest.mark.asyncio
    async def test_protected_route_needs_cookie(self, client):
        response = await client.get("/api/contributions")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        client.cookies.set(COOKIE_NAME, "not-a-jwt")
        response = await client.get("/api/contributions")
        assert response.status_code == 401


# ── contributions ─────────────────────────────────────────


class TestContributionRoutes:
    @pytest.mark.asyncio
    async def test_record_and_approve(self, accountant_client):
        response = await accountant_client.post(
            "/api/contributions",
            json={"entity_code": "M-100", "amount": "100000000", "kind": "cash"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["tier"] == "angel"
        assert body["status"] == "pending"

        approve = await accountant_client.post(f"/api/contributions/{body['event_id']}/approve")
        assert approve.status_code == 200
        assert approve.json()["status"] == "approved"

        again = await accountant_client.post(f"/api/contributions/{body['event_id']}/approve")
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, accountant_client):
        response = await accountant_client.post(
            "/api/contributions",
            json={"entity_code": "M-101", "amount": "0", "kind": "cash"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_event(self, accountant_client):
        response = await accountant_client.post("/api/contributions/9999/approve")
        assert response.status_code == 404


# ── distributions ─────────────────────────────────────────


class TestDistributionRoutes:
    @pytest.mark.asyncio
    async def test_process_twice_is_a_noop(self, accountant_client, seeded_db):
        await record_ledger_entry(
            seeded_db, LedgerEntryType.INCOME, Decimal("100000000"), "Sales",
            occurred_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
        )

        first = await accountant_client.post(
            "/api/distributions/process", json={"period_value": "2024-Q1"},
        )
        assert first.status_code == 200
        assert first.json()["already_processed"] is False
        run_id = first.json()["period"]["id"]

        second = await accountant_client.post(
            "/api/distributions/process", json={"period_value": "2024-Q1"},
        )
        assert second.status_code == 200
        assert second.json()["already_processed"] is True
        assert second.json()["period"]["id"] == run_id

    @pytest.mark.asyncio
    async def test_bad_quarter_is_422(self, accountant_client):
        response = await accountant_client.post(
            "/api/distributions/process", json={"period_value": "2024-Q9"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_quarter_with_trailing_newline_is_400(self, accountant_client):
        response = await accountant_client.get("/api/distributions/preview/2024-Q1%0A")
        assert response.status_code == 400

        response = await accountant_client.get("/api/distributions/periods/2024-Q1%0A")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_preview(self, accountant_client):
        response = await accountant_client.get("/api/distributions/preview/2024-Q3")
        assert response.status_code == 200
        assert response.json()["can_process"] is True

    @pytest.mark.asyncio
    async def test_unprocessed_period_is_404(self, accountant_client):
        response = await accountant_client.get("/api/distributions/periods/2024-Q3")
        assert response.status_code == 404


# ── holders ───────────────────────────────────────────────


class TestHolderRoutes:
    @pytest.mark.asyncio
    async def test_open_branch(self, accountant_client):
        response = await accountant_client.post(
            "/api/branches",
            json={"code": "B-100", "name": "Riverside", "franchise_fee": "300000000"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["shares"]) == Decimal("200")

        duplicate = await accountant_client.post(
            "/api/branches",
            json={"code": "B-100", "name": "Riverside", "franchise_fee": "300000000"},
        )
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_member(self, accountant_client):
        response = await accountant_client.get("/api/entities/NOPE")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rebase_is_admin_only(self, accountant_client):
        response = await accountant_client.post("/api/entities/M-001/rebase")
        assert response.status_code == 403


# ── withdrawals and tiers ─────────────────────────────────


class TestOtherRoutes:
    @pytest.mark.asyncio
    async def test_withdrawal_quote(self, accountant_client):
        response = await accountant_client.post("/api/withdrawals/quote", json={"amount": "12000000"})
        assert response.status_code == 200
        assert Decimal(response.json()["tax"]) == Decimal("1200000")

    @pytest.mark.asyncio
    async def test_withdrawal_below_minimum(self, accountant_client):
        response = await accountant_client.post("/api/withdrawals/quote", json={"amount": "4000000"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_tier_update_is_admin_only(self, accountant_client):
        response = await accountant_client.patch("/api/tiers/angel", json={"maxout_multiplier": "6"})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_updates_tier(self, admin_client):
        response = await admin_client.patch("/api/tiers/angel", json={"maxout_multiplier": "6"})
        assert response.status_code == 200
        assert Decimal(response.json()["maxout_multiplier"]) == Decimal("6")
