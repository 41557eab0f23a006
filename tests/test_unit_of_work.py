"""Testes do UnitOfWork e do dispatcher — despacho só depois do commit."""

import pytest
from sqlalchemy.exc import OperationalError

from app.application.shared.event_dispatcher import (
    clear_handlers,
    dispatch_events,
    handlers_for,
    register_handler,
)
from app.application.shared.unit_of_work import UnitOfWork
from app.domain.events.ticket_events import TicketStatusChanged
from app.domain.shared.errors import TransientStoreError
from app.domain.systems.tickets.entity import Ticket, TicketStatus


class FakeSession:
    def __init__(self, fail_commit: bool = False) -> None:
        self.fail_commit = fail_commit
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        if self.fail_commit:
            raise OperationalError("COMMIT", {}, ConnectionResetError("conexão caiu"))
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def flush(self) -> None:
        pass


def changed_ticket() -> Ticket:
    ticket = Ticket(id=1, title="T", description="D", category="software")
    ticket.change_status(TicketStatus.RESOLVED, changed_by=2)
    return ticket


@pytest.mark.asyncio
async def test_events_dispatched_after_commit():
    seen = []
    register_handler(TicketStatusChanged, seen.append)

    uow = UnitOfWork(FakeSession())
    uow.collect_events_from(changed_ticket())
    assert len(uow.pending_events) == 1
    assert seen == []

    await uow.commit()
    assert [e.new_status for e in seen] == ["resolved"]
    assert uow.pending_events == ()


@pytest.mark.asyncio
async def test_transient_commit_failure_discards_events():
    seen = []
    register_handler(TicketStatusChanged, seen.append)

    session = FakeSession(fail_commit=True)
    uow = UnitOfWork(session)
    uow.collect_events_from(changed_ticket())

    with pytest.raises(TransientStoreError):
        await uow.commit()

    assert seen == []
    assert session.rollbacks == 1
    assert uow.pending_events == ()


@pytest.mark.asyncio
async def test_rollback_discards_events():
    seen = []
    register_handler(TicketStatusChanged, seen.append)

    uow = UnitOfWork(FakeSession())
    uow.collect_events_from(changed_ticket())
    await uow.rollback()
    await uow.dispatch_pending()

    assert seen == []


@pytest.mark.asyncio
async def test_failing_handler_does_not_block_others():
    clear_handlers()
    seen = []

    def broken(event):
        raise RuntimeError("handler quebrado")

    register_handler(TicketStatusChanged, broken)
    register_handler(TicketStatusChanged, seen.append)

    delivered = await dispatch_events(changed_ticket().collect_events())
    assert len(seen) == 1
    assert delivered == 1


def test_register_handler_ignores_duplicates():
    def handler(event):
        pass

    register_handler(TicketStatusChanged, handler)
    register_handler(TicketStatusChanged, handler)
    assert handlers_for(TicketStatusChanged).count(handler) == 1


@pytest.mark.asyncio
async def test_transient_error_maps_to_503(client, user_token, monkeypatch):
    async def failing_commit(self):
        raise TransientStoreError("banco fora do ar")

    monkeypatch.setattr(UnitOfWork, "commit", failing_commit)

    resp = await client.post("/api/v1/tickets/", json={
        "title": "X", "description": "Y", "priority": "low", "category": "software",
    }, headers={"Authorization": f"Bearer {user_token}"})
    assert resp.status_code == 503
    assert resp.json()["retryable"] is True
