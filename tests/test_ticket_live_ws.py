"""
Testes do WebSocket /tickets/{id}/live — autorização, repasse de eventos,
encerramento do canal e desinscrição na desconexão.

Usa o TestClient do Starlette: requisições HTTP e WebSocket rodam no mesmo
loop, o que mantém o change feed consistente entre mutação e assinatura.
"""

import time

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import app
from tests.conftest import DEFAULT_PASSWORD, auth_header, create_user

WS_POLICY_VIOLATION = 1008
WS_TRY_AGAIN_LATER = 1013


def sync_login(tc: TestClient, email: str) -> str:
    resp = tc.post("/api/v1/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def sync_open_ticket(tc: TestClient, token: str) -> dict:
    payload = {
        "title": "Impressora parada",
        "description": "Sem toner",
        "priority": "high",
        "category": "hardware",
    }
    resp = tc.post("/api/v1/tickets/", json=payload, headers=auth_header(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def live_url(ticket_id: int, token: str) -> str:
    return f"/api/v1/tickets/{ticket_id}/live?token={token}"


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def ready(ws) -> None:
    """ping/pong só é respondido depois que a assinatura está ativa."""
    ws.send_text("ping")
    assert ws.receive_text() == "pong"


# ════════════════════════════════════════════════════════════════
# AUTORIZAÇÃO
# ════════════════════════════════════════════════════════════════

def test_invalid_token_closes_with_policy_violation(regular_user):
    with TestClient(app) as tc:
        ticket = sync_open_ticket(tc, sync_login(tc, regular_user.email))

        with pytest.raises(WebSocketDisconnect) as exc:
            with tc.websocket_connect(live_url(ticket["id"], "invalido")):
                pass
        assert exc.value.code == WS_POLICY_VIOLATION


def test_stranger_closes_with_policy_violation(regular_user):
    with TestClient(app) as tc:
        ticket = sync_open_ticket(tc, sync_login(tc, regular_user.email))
        tc.portal.call(create_user, "outro@test.com")
        stranger_token = sync_login(tc, "outro@test.com")

        with pytest.raises(WebSocketDisconnect) as exc:
            with tc.websocket_connect(live_url(ticket["id"], stranger_token)):
                pass
        assert exc.value.code == WS_POLICY_VIOLATION


# ════════════════════════════════════════════════════════════════
# REPASSE DE EVENTOS
# ════════════════════════════════════════════════════════════════

def test_relays_ticket_changes_and_comments(regular_user, support_user):
    with TestClient(app) as tc:
        user_token = sync_login(tc, regular_user.email)
        support_token = sync_login(tc, support_user.email)
        ticket = sync_open_ticket(tc, user_token)

        with tc.websocket_connect(live_url(ticket["id"], user_token)) as ws:
            ready(ws)

            resp = tc.patch(
                f"/api/v1/tickets/{ticket['id']}/status", json={"status": "in_progress"},
                headers=auth_header(support_token),
            )
            assert resp.status_code == 200
            changed = ws.receive_json()
            assert changed["type"] == "ticket_changed"
            assert changed["ticket_id"] == ticket["id"]
            assert changed["record"]["status"] == "in_progress"
            assert changed["record"]["title"] == "Impressora parada"

            resp = tc.post(
                f"/api/v1/tickets/{ticket['id']}/comments", json={"content": "Estamos vendo"},
                headers=auth_header(support_token),
            )
            assert resp.status_code == 201
            inserted = ws.receive_json()
            assert inserted["type"] == "comment_inserted"
            assert inserted["record"]["content"] == "Estamos vendo"
            assert inserted["record"]["user_id"] == support_user.id


# ════════════════════════════════════════════════════════════════
# ENCERRAMENTO
# ════════════════════════════════════════════════════════════════

def test_feed_close_sends_channel_closed_then_1013(regular_user, live_feed):
    with TestClient(app) as tc:
        user_token = sync_login(tc, regular_user.email)
        ticket = sync_open_ticket(tc, user_token)

        with tc.websocket_connect(live_url(ticket["id"], user_token)) as ws:
            ready(ws)
            tc.portal.call(live_feed.close)

            message = ws.receive_json()
            assert message["type"] == "channel_closed"
            assert message["ticket_id"] == ticket["id"]

            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_text()
            assert exc.value.code == WS_TRY_AGAIN_LATER


def test_client_disconnect_unsubscribes(regular_user, live_feed):
    with TestClient(app) as tc:
        user_token = sync_login(tc, regular_user.email)
        ticket = sync_open_ticket(tc, user_token)

        with tc.websocket_connect(live_url(ticket["id"], user_token)) as ws:
            ready(ws)
            assert live_feed.subscriber_count == 2

        assert wait_until(lambda: live_feed.subscriber_count == 0)
        assert not live_feed.closed
