"""Testes de Tickets — criação, listagem, detalhe, status, atribuição, comentários, histórico."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from app.domain.systems.users.entity import UserRole, UserStatus
from app.infrastructure.systems.tickets.history_repository import HistoryRepository
from tests.conftest import auth_header, create_user, login, open_ticket


# ════════════════════════════════════════════════════════════════
# CREATE
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_create_ticket(client: AsyncClient, user_token: str, regular_user):
    data = await open_ticket(
        client, user_token,
        title="Printer down", description="No toner", priority="high", category="hardware",
    )
    assert data["title"] == "Printer down"
    assert data["status"] == "open"
    assert data["priority"] == "high"
    assert data["created_by"] == regular_user.id
    assert data["assigned_to"] is None
    assert data["creator"]["email"] == "user@test.com"


@pytest.mark.asyncio
async def test_create_ticket_ignores_status_and_owner(client: AsyncClient, user_token: str, regular_user):
    data = await open_ticket(client, user_token, status="closed", created_by=99999)
    assert data["status"] == "open"
    assert data["created_by"] == regular_user.id


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["title", "description", "priority", "category"])
async def test_create_ticket_missing_field(client: AsyncClient, user_token: str, missing: str):
    payload = {
        "title": "Impressora parada",
        "description": "Sem toner",
        "priority": "high",
        "category": "hardware",
    }
    payload[missing] = "   "
    resp = await client.post("/api/v1/tickets/", json=payload, headers=auth_header(user_token))
    assert resp.status_code == 400
    assert resp.json()["field"] == missing


@pytest.mark.asyncio
async def test_create_ticket_invalid_priority(client: AsyncClient, user_token: str):
    resp = await client.post("/api/v1/tickets/", json={
        "title": "X", "description": "Y", "priority": "urgentissimo", "category": "software",
    }, headers=auth_header(user_token))
    assert resp.status_code == 400
    assert resp.json()["field"] == "priority"


@pytest.mark.asyncio
async def test_create_ticket_requires_auth(client: AsyncClient):
    resp = await client.post("/api/v1/tickets/", json={"title": "X"})
    assert resp.status_code == 401


# ════════════════════════════════════════════════════════════════
# LIST
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_list_tickets_paginated(client: AsyncClient, user_token: str):
    for i in range(3):
        await open_ticket(client, user_token, title=f"Ticket {i}")

    resp = await client.get("/api/v1/tickets/?page=1&page_size=2", headers=auth_header(user_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert len(data["items"]) == 2
    assert data["pages"] == 2
    assert data["page"] == 1
    # Mais recente primeiro
    assert data["items"][0]["title"] == "Ticket 2"


@pytest.mark.asyncio
async def test_list_tickets_ascending(client: AsyncClient, user_token: str):
    for i in range(3):
        await open_ticket(client, user_token, title=f"Ticket {i}")

    resp = await client.get("/api/v1/tickets/?order=asc", headers=auth_header(user_token))
    assert [t["title"] for t in resp.json()["items"]] == ["Ticket 0", "Ticket 1", "Ticket 2"]


@pytest.mark.asyncio
async def test_filter_tickets_by_status(client: AsyncClient, user_token: str, support_token: str):
    first = await open_ticket(client, user_token, title="Vai resolver")
    await open_ticket(client, user_token, title="Fica aberto")
    await client.patch(
        f"/api/v1/tickets/{first['id']}/status", json={"status": "resolved"},
        headers=auth_header(support_token),
    )

    resp = await client.get("/api/v1/tickets/?status=open", headers=auth_header(user_token))
    assert [t["title"] for t in resp.json()["items"]] == ["Fica aberto"]

    resp = await client.get("/api/v1/tickets/?status=resolved", headers=auth_header(user_token))
    assert [t["title"] for t in resp.json()["items"]] == ["Vai resolver"]


@pytest.mark.asyncio
async def test_filter_tickets_invalid_status(client: AsyncClient, user_token: str):
    resp = await client.get("/api/v1/tickets/?status=done", headers=auth_header(user_token))
    assert resp.status_code == 400
    assert resp.json()["field"] == "status"


@pytest.mark.asyncio
async def test_filter_tickets_priority_and_category(client: AsyncClient, user_token: str):
    await open_ticket(client, user_token, title="A", priority="low", category="software")
    await open_ticket(client, user_token, title="B", priority="critical", category="software")
    await open_ticket(client, user_token, title="C", priority="critical", category="network")

    resp = await client.get(
        "/api/v1/tickets/?priority=critical&category=software", headers=auth_header(user_token)
    )
    assert [t["title"] for t in resp.json()["items"]] == ["B"]


@pytest.mark.asyncio
async def test_search_tickets(client: AsyncClient, user_token: str):
    await open_ticket(client, user_token, title="VPN não conecta")
    await open_ticket(client, user_token, title="Teclado quebrado")

    resp = await client.get("/api/v1/tickets/?search=vpn", headers=auth_header(user_token))
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["title"] == "VPN não conecta"


@pytest.mark.asyncio
async def test_filter_tickets_by_market(client: AsyncClient, user_token: str, support_token: str):
    await create_user("mx@test.com", market="MX")
    mx_token = await login(client, "mx@test.com")
    await open_ticket(client, user_token, title="Do Brasil")
    await open_ticket(client, mx_token, title="Do México")

    resp = await client.get("/api/v1/tickets/?market=MX", headers=auth_header(support_token))
    assert [t["title"] for t in resp.json()["items"]] == ["Do México"]


@pytest.mark.asyncio
async def test_user_lists_only_own_tickets(client: AsyncClient, user_token: str, support_token: str):
    other = await create_user("outro@test.com")
    other_token = await login(client, "outro@test.com")
    await open_ticket(client, user_token, title="Meu")
    await open_ticket(client, other_token, title="Do outro")

    resp = await client.get(
        f"/api/v1/tickets/?created_by={other.id}", headers=auth_header(user_token)
    )
    assert [t["title"] for t in resp.json()["items"]] == ["Meu"]

    resp = await client.get("/api/v1/tickets/", headers=auth_header(support_token))
    assert resp.json()["total"] == 2


@pytest.mark.asyncio
async def test_filter_by_assignee(client: AsyncClient, user_token: str, support_token: str, support_user):
    first = await open_ticket(client, user_token, title="Atribuído")
    await open_ticket(client, user_token, title="Livre")
    await client.patch(
        f"/api/v1/tickets/{first['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(support_token),
    )

    resp = await client.get(
        f"/api/v1/tickets/?assigned_to={support_user.id}", headers=auth_header(support_token)
    )
    assert [t["title"] for t in resp.json()["items"]] == ["Atribuído"]


# ════════════════════════════════════════════════════════════════
# DETAIL
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_get_ticket_detail(client: AsyncClient, user_token: str, support_token: str):
    ticket = await open_ticket(client, user_token)
    await client.post(
        f"/api/v1/tickets/{ticket['id']}/comments", json={"content": "Alguma novidade?"},
        headers=auth_header(user_token),
    )

    resp = await client.get(f"/api/v1/tickets/{ticket['id']}", headers=auth_header(support_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["ticket"]["id"] == ticket["id"]
    assert data["ticket"]["creator"]["email"] == "user@test.com"
    assert [c["content"] for c in data["comments"]] == ["Alguma novidade?"]
    assert data["comments"][0]["author"]["email"] == "user@test.com"
    assert [h["action"] for h in data["history"]] == ["comment"]


@pytest.mark.asyncio
async def test_get_ticket_not_found(client: AsyncClient, user_token: str):
    resp = await client.get("/api/v1/tickets/99999", headers=auth_header(user_token))
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_get_ticket_of_other_user_forbidden(client: AsyncClient, user_token: str):
    await create_user("outro@test.com")
    other_token = await login(client, "outro@test.com")
    ticket = await open_ticket(client, other_token)

    resp = await client.get(f"/api/v1/tickets/{ticket['id']}", headers=auth_header(user_token))
    assert resp.status_code == 403


# ════════════════════════════════════════════════════════════════
# STATUS
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_change_status_by_support(client: AsyncClient, user_token: str, support_token: str, support_user):
    ticket = await open_ticket(client, user_token)

    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "in_progress"},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["degraded"] is False
    assert body["warnings"] == []
    assert body["data"]["status"] == "in_progress"

    history = await client.get(f"/api/v1/tickets/{ticket['id']}/history", headers=auth_header(support_token))
    events = history.json()
    assert len(events) == 1
    assert events[0]["action"] == "status"
    assert events[0]["user_id"] == support_user.id
    assert "in_progress" in events[0]["details"]


@pytest.mark.asyncio
async def test_any_status_is_accepted(client: AsyncClient, user_token: str, support_token: str):
    ticket = await open_ticket(client, user_token)

    for target in ("closed", "open", "resolved", "resolved"):
        resp = await client.patch(
            f"/api/v1/tickets/{ticket['id']}/status", json={"status": target},
            headers=auth_header(support_token),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == target

    history = await client.get(f"/api/v1/tickets/{ticket['id']}/history", headers=auth_header(support_token))
    assert len(history.json()) == 4


@pytest.mark.asyncio
async def test_change_status_invalid_value(client: AsyncClient, user_token: str, support_token: str):
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "done"},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "status"


@pytest.mark.asyncio
async def test_user_cannot_change_status(client: AsyncClient, user_token: str):
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "closed"},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_change_status_ticket_not_found(client: AsyncClient, support_token: str):
    resp = await client.patch(
        "/api/v1/tickets/99999/status", json={"status": "closed"},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_status_change_keeps_other_fields(client: AsyncClient, user_token: str, support_token: str, support_user):
    ticket = await open_ticket(client, user_token)
    await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(support_token),
    )
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "resolved"},
        headers=auth_header(support_token),
    )
    data = resp.json()["data"]
    assert data["assigned_to"] == support_user.id
    assert data["title"] == ticket["title"]
    assert data["priority"] == ticket["priority"]


# ════════════════════════════════════════════════════════════════
# ASSIGNMENT
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_assign_to_support(client: AsyncClient, user_token: str, admin_token: str, support_user):
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(admin_token),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["assigned_to"] == support_user.id
    assert data["assignee"]["full_name"] == "Suporte Teste"

    history = await client.get(f"/api/v1/tickets/{ticket['id']}/history", headers=auth_header(admin_token))
    assert history.json()[0]["action"] == "assign"
    assert "Suporte Teste" in history.json()[0]["details"]


@pytest.mark.asyncio
async def test_assign_to_regular_user_fails(
    client: AsyncClient, user_token: str, support_token: str, support_user, regular_user
):
    ticket = await open_ticket(client, user_token)
    await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(support_token),
    )

    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": regular_user.id},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "assigned_to"

    detail = await client.get(f"/api/v1/tickets/{ticket['id']}", headers=auth_header(support_token))
    assert detail.json()["ticket"]["assigned_to"] == support_user.id
    assert len(detail.json()["history"]) == 1


@pytest.mark.asyncio
async def test_assign_to_inactive_staff_fails(client: AsyncClient, user_token: str, support_token: str):
    inactive = await create_user("ex-suporte@test.com", UserRole.SUPPORT, status=UserStatus.INACTIVE)
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": inactive.id},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_assign_to_unknown_user_fails(client: AsyncClient, user_token: str, support_token: str):
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": 99999},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "assigned_to"


@pytest.mark.asyncio
async def test_unassign(client: AsyncClient, user_token: str, support_token: str, support_user):
    ticket = await open_ticket(client, user_token)
    await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(support_token),
    )
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": None},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["assigned_to"] is None


@pytest.mark.asyncio
async def test_user_cannot_assign(client: AsyncClient, user_token: str, support_user):
    ticket = await open_ticket(client, user_token)
    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/assign", json={"assigned_to": support_user.id},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_assignable(client: AsyncClient, support_token: str, admin_user, regular_user):
    await create_user("inativo@test.com", UserRole.SUPPORT, status=UserStatus.INACTIVE)
    resp = await client.get("/api/v1/tickets/assignable", headers=auth_header(support_token))
    assert resp.status_code == 200
    emails = {p["email"] for p in resp.json()}
    assert emails == {"admin@test.com", "suporte@test.com"}


# ════════════════════════════════════════════════════════════════
# COMMENTS / HISTORY
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_add_comment(client: AsyncClient, user_token: str, regular_user):
    ticket = await open_ticket(client, user_token)
    resp = await client.post(
        f"/api/v1/tickets/{ticket['id']}/comments", json={"content": "  Obrigado!  "},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["degraded"] is False
    assert body["data"]["content"] == "Obrigado!"
    assert body["data"]["user_id"] == regular_user.id
    assert body["data"]["author"]["email"] == "user@test.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_empty_comment_rejected(client: AsyncClient, user_token: str, content):
    ticket = await open_ticket(client, user_token)
    resp = await client.post(
        f"/api/v1/tickets/{ticket['id']}/comments", json={"content": content},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "content"

    detail = await client.get(f"/api/v1/tickets/{ticket['id']}", headers=auth_header(user_token))
    assert detail.json()["comments"] == []
    assert detail.json()["history"] == []


@pytest.mark.asyncio
async def test_comment_on_missing_ticket(client: AsyncClient, user_token: str):
    resp = await client.post(
        "/api/v1/tickets/99999/comments", json={"content": "Olá"},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stranger_cannot_comment(client: AsyncClient, user_token: str):
    await create_user("outro@test.com")
    other_token = await login(client, "outro@test.com")
    ticket = await open_ticket(client, other_token)

    resp = await client.post(
        f"/api/v1/tickets/{ticket['id']}/comments", json={"content": "Intrometido"},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_comments_oldest_first_history_newest_first(client: AsyncClient, user_token: str):
    ticket = await open_ticket(client, user_token)
    for text in ("primeiro", "segundo", "terceiro"):
        await client.post(
            f"/api/v1/tickets/{ticket['id']}/comments", json={"content": text},
            headers=auth_header(user_token),
        )

    comments = await client.get(f"/api/v1/tickets/{ticket['id']}/comments", headers=auth_header(user_token))
    assert [c["content"] for c in comments.json()] == ["primeiro", "segundo", "terceiro"]

    history = await client.get(f"/api/v1/tickets/{ticket['id']}/history", headers=auth_header(user_token))
    ids = [h["id"] for h in history.json()]
    assert ids == sorted(ids, reverse=True)
    assert len(ids) == 3


# ════════════════════════════════════════════════════════════════
# LIFECYCLE COMPLETO
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_full_ticket_lifecycle(
    client: AsyncClient, user_token: str, admin_token: str, regular_user, admin_user, support_user
):
    ticket = await open_ticket(
        client, user_token,
        title="Printer down", description="No toner", priority="high", category="hardware",
    )
    assert ticket["status"] == "open"
    assert ticket["created_by"] == regular_user.id
    tid = ticket["id"]

    resp = await client.patch(
        f"/api/v1/tickets/{tid}/status", json={"status": "resolved"}, headers=auth_header(admin_token)
    )
    assert resp.json()["data"]["status"] == "resolved"
    history = (await client.get(f"/api/v1/tickets/{tid}/history", headers=auth_header(admin_token))).json()
    assert [(h["action"], h["user_id"]) for h in history] == [("status", admin_user.id)]

    resp = await client.patch(
        f"/api/v1/tickets/{tid}/assign", json={"assigned_to": support_user.id}, headers=auth_header(admin_token)
    )
    assert resp.json()["data"]["assigned_to"] == support_user.id

    resp = await client.post(
        f"/api/v1/tickets/{tid}/comments", json={"content": "Thanks!"}, headers=auth_header(user_token)
    )
    assert resp.status_code == 201

    detail = (await client.get(f"/api/v1/tickets/{tid}", headers=auth_header(admin_token))).json()
    assert [c["content"] for c in detail["comments"]] == ["Thanks!"]
    assert [h["action"] for h in detail["history"]] == ["comment", "assign", "status"]
    assert detail["ticket"]["status"] == "resolved"
    assert detail["ticket"]["assigned_to"] == support_user.id


# ════════════════════════════════════════════════════════════════
# HISTÓRICO DEGRADADO
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_history_failure_reports_degraded(
    client: AsyncClient, user_token: str, support_token: str, monkeypatch
):
    ticket = await open_ticket(client, user_token)

    async def broken_append(self, event):
        raise RuntimeError("tabela de histórico indisponível")

    monkeypatch.setattr(HistoryRepository, "append", broken_append)

    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "closed"},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["degraded"] is True
    assert len(body["warnings"]) == 1
    assert body["data"]["status"] == "closed"

    monkeypatch.undo()
    detail = (await client.get(f"/api/v1/tickets/{ticket['id']}", headers=auth_header(support_token))).json()
    assert detail["ticket"]["status"] == "closed"
    assert detail["history"] == []


@pytest.mark.asyncio
async def test_comment_kept_when_history_fails(client: AsyncClient, user_token: str, monkeypatch):
    ticket = await open_ticket(client, user_token)

    async def broken_append(self, event):
        raise RuntimeError("falha simulada")

    monkeypatch.setattr(HistoryRepository, "append", broken_append)

    resp = await client.post(
        f"/api/v1/tickets/{ticket['id']}/comments", json={"content": "Fica mesmo assim"},
        headers=auth_header(user_token),
    )
    assert resp.status_code == 201
    assert resp.json()["degraded"] is True

    monkeypatch.undo()
    comments = await client.get(f"/api/v1/tickets/{ticket['id']}/comments", headers=auth_header(user_token))
    assert [c["content"] for c in comments.json()] == ["Fica mesmo assim"]


@pytest.mark.asyncio
async def test_degraded_warning_hides_database_error(
    client: AsyncClient, user_token: str, support_token: str, monkeypatch
):
    ticket = await open_ticket(client, user_token)

    async def broken_append(self, event):
        raise IntegrityError(
            "INSERT INTO ticket_history (secret_col) VALUES (?)", {"p": 1}, Exception("constraint x"),
        )

    monkeypatch.setattr(HistoryRepository, "append", broken_append)

    resp = await client.patch(
        f"/api/v1/tickets/{ticket['id']}/status", json={"status": "resolved"},
        headers=auth_header(support_token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["degraded"] is True
    assert body["warnings"] == [f"Histórico 'status' do ticket {ticket['id']} não foi gravado"]
    assert "INSERT" not in resp.text
    assert "secret_col" not in resp.text
    assert "constraint x" not in resp.text
