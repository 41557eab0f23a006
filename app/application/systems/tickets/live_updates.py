"""
Canal de atualizações ao vivo de um ticket.

Assina no change feed duas streams filtradas pelo ticket:

  - tickets          UPDATE  id == ticket_id         → on_ticket_changed
  - ticket_comments  INSERT  ticket_id == ticket_id  → on_comment_inserted

Estados de uma assinatura:

  UNSUBSCRIBED → SUBSCRIBING → ACTIVE → (CLOSED | UNSUBSCRIBED)

Callbacks só disparam em ACTIVE. CLOSED é terminal: o feed terminou e o
consumidor deve recarregar manualmente. Não há replay de eventos
anteriores à assinatura.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from app.application.shared.change_feed import INSERT, UPDATE, ChangeEvent, IChangeFeed, IChangeStream
from app.domain.shared.errors import ChannelClosedError

logger = logging.getLogger(__name__)

TICKETS_TABLE = "tickets"
COMMENTS_TABLE = "ticket_comments"

ChangeCallback = Callable[[dict[str, Any]], Any]
ClosedCallback = Callable[[ChannelClosedError], Any]


class SubscriptionState(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    CLOSED = "closed"


class Subscription:
    """Handle opaco devolvido por `LiveUpdateChannel.subscribe`."""

    def __init__(self, ticket_id: int) -> None:
        self.ticket_id = ticket_id
        self.state = SubscriptionState.UNSUBSCRIBED
        self._streams: list[IChangeStream] = []
        self._tasks: list[asyncio.Task] = []

    @property
    def active(self) -> bool:
        return self.state == SubscriptionState.ACTIVE

    def __repr__(self) -> str:
        return f"<Subscription ticket={self.ticket_id} state={self.state.value}>"


async def _invoke(callback: Callable, *args) -> None:
    result = callback(*args)
    # Suporta callbacks async e sync
    if hasattr(result, "__await__"):
        await result


class LiveUpdateChannel:
    def __init__(self, feed: IChangeFeed) -> None:
        self._feed = feed

    async def subscribe(
        self,
        ticket_id: int,
        on_ticket_changed: ChangeCallback,
        on_comment_inserted: ChangeCallback,
        on_closed: Optional[ClosedCallback] = None,
    ) -> Subscription:
        handle = Subscription(ticket_id)
        handle.state = SubscriptionState.SUBSCRIBING
        try:
            ticket_stream = self._feed.subscribe(TICKETS_TABLE, {"id": ticket_id}, (UPDATE,))
            handle._streams.append(ticket_stream)
            comment_stream = self._feed.subscribe(COMMENTS_TABLE, {"ticket_id": ticket_id}, (INSERT,))
            handle._streams.append(comment_stream)
        except ChannelClosedError:
            self._release(handle)
            handle.state = SubscriptionState.CLOSED
            raise

        handle.state = SubscriptionState.ACTIVE
        handle._tasks = [
            asyncio.create_task(self._pump(handle, ticket_stream, on_ticket_changed, on_closed)),
            asyncio.create_task(self._pump(handle, comment_stream, on_comment_inserted, on_closed)),
        ]
        logger.debug("Live: ticket %d assinado", ticket_id)
        return handle

    def unsubscribe(self, handle: Subscription) -> None:
        """Idempotente; nenhum callback dispara depois do retorno."""
        if handle.state in (SubscriptionState.UNSUBSCRIBED, SubscriptionState.CLOSED):
            self._release(handle)
            return
        handle.state = SubscriptionState.UNSUBSCRIBED
        self._release(handle)
        logger.debug("Live: ticket %d desassinado", handle.ticket_id)

    @asynccontextmanager
    async def subscription(
        self,
        ticket_id: int,
        on_ticket_changed: ChangeCallback,
        on_comment_inserted: ChangeCallback,
        on_closed: Optional[ClosedCallback] = None,
    ) -> AsyncIterator[Subscription]:
        handle = await self.subscribe(ticket_id, on_ticket_changed, on_comment_inserted, on_closed)
        try:
            yield handle
        finally:
            self.unsubscribe(handle)

    # ── Internos ──

    def _release(self, handle: Subscription) -> None:
        streams, handle._streams = handle._streams, []
        for stream in streams:
            self._feed.unsubscribe(stream)
        tasks, handle._tasks = handle._tasks, []
        current = asyncio.current_task() if _running_loop() else None
        for task in tasks:
            if task is not current and not task.done():
                task.cancel()

    async def _pump(
        self,
        handle: Subscription,
        stream: IChangeStream,
        callback: ChangeCallback,
        on_closed: Optional[ClosedCallback],
    ) -> None:
        try:
            async for event in stream:
                if not handle.active:
                    break
                await self._deliver(handle, callback, event)
        except ChannelClosedError as exc:
            if handle.state != SubscriptionState.ACTIVE:
                return
            handle.state = SubscriptionState.CLOSED
            self._release(handle)
            logger.warning("Live: canal do ticket %d encerrado: %s", handle.ticket_id, exc)
            if on_closed is not None:
                try:
                    await _invoke(on_closed, exc)
                except Exception:
                    logger.exception("Live: erro no callback on_closed do ticket %d", handle.ticket_id)

    async def _deliver(self, handle: Subscription, callback: ChangeCallback, event: ChangeEvent) -> None:
        try:
            await _invoke(callback, dict(event.record))
        except Exception:
            logger.exception(
                "Live: erro no callback de %s/%s do ticket %d",
                event.table, event.event_type, handle.ticket_id,
            )


def _running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
