"""Testes do dashboard — contadores e tickets recentes."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from app.application.systems.dashboard.use_cases import start_of_day
from tests.conftest import auth_header, open_ticket


@pytest.mark.asyncio
async def test_dashboard_counts(client: AsyncClient, user_token: str, support_token: str):
    first = await open_ticket(client, user_token, title="Crítico", priority="critical")
    await open_ticket(client, user_token, title="Crítico resolvido", priority="critical")
    third = await open_ticket(client, user_token, title="Normal", priority="low")

    await client.patch(
        f"/api/v1/tickets/{third['id']}/status", json={"status": "resolved"},
        headers=auth_header(support_token),
    )
    await client.patch(
        f"/api/v1/tickets/{first['id']}/status", json={"status": "in_progress"},
        headers=auth_header(support_token),
    )

    resp = await client.get("/api/v1/dashboard/stats", headers=auth_header(support_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_tickets"] == 3
    assert data["open_tickets"] == 1
    assert data["resolved_today"] == 1
    assert data["critical_open"] == 1
    assert data["total_users"] == 2
    assert [t["title"] for t in data["recent_tickets"]] == ["Normal", "Crítico resolvido", "Crítico"]


@pytest.mark.asyncio
async def test_dashboard_recent_is_limited(client: AsyncClient, user_token: str, admin_token: str):
    for i in range(7):
        await open_ticket(client, user_token, title=f"T{i}")

    resp = await client.get("/api/v1/dashboard/stats", headers=auth_header(admin_token))
    assert len(resp.json()["recent_tickets"]) == 5
    assert resp.json()["recent_tickets"][0]["title"] == "T6"


@pytest.mark.asyncio
async def test_dashboard_forbidden_for_user(client: AsyncClient, user_token: str):
    resp = await client.get("/api/v1/dashboard/stats", headers=auth_header(user_token))
    assert resp.status_code == 403


def test_start_of_day_is_utc_midnight():
    now = datetime(2024, 5, 10, 15, 42, 7, tzinfo=timezone.utc)
    assert start_of_day(now) == datetime(2024, 5, 10, tzinfo=timezone.utc)
