"""Testes da configuração do portal."""

import pytest
from httpx import AsyncClient

from tests.conftest import auth_header

SETTINGS = {
    "portal_name": "Suporte ACME",
    "primary_color": "#ff0000",
    "ticket_categories": ["hardware", " software ", ""],
    "asset_types": ["notebook"],
    "sla_hours": 8,
}


@pytest.mark.asyncio
async def test_defaults_before_first_save(client: AsyncClient, user_token: str):
    resp = await client.get("/api/v1/settings/", headers=auth_header(user_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["portal_name"] == "Portal de Suporte TI"
    assert "hardware" in data["ticket_categories"]
    assert data["updated_by"] is None


@pytest.mark.asyncio
async def test_admin_saves_settings(client: AsyncClient, admin_token: str, user_token: str, admin_user):
    resp = await client.put("/api/v1/settings/", json=SETTINGS, headers=auth_header(admin_token))
    assert resp.status_code == 200
    assert resp.json()["ticket_categories"] == ["hardware", "software"]
    assert resp.json()["updated_by"] == admin_user.id

    # Segundo save sobrescreve a mesma linha
    resp = await client.put(
        "/api/v1/settings/", json={**SETTINGS, "sla_hours": 12}, headers=auth_header(admin_token)
    )
    assert resp.json()["sla_hours"] == 12

    resp = await client.get("/api/v1/settings/", headers=auth_header(user_token))
    assert resp.json()["portal_name"] == "Suporte ACME"
    assert resp.json()["sla_hours"] == 12


@pytest.mark.asyncio
async def test_support_cannot_save_settings(client: AsyncClient, support_token: str):
    resp = await client.put("/api/v1/settings/", json=SETTINGS, headers=auth_header(support_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_invalid_sla(client: AsyncClient, admin_token: str):
    resp = await client.put(
        "/api/v1/settings/", json={**SETTINGS, "sla_hours": 0}, headers=auth_header(admin_token)
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "sla_hours"
