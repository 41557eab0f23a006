"""
Change feed em processo.

Cada assinatura recebe uma fila própria; `publish` entrega o evento às
assinaturas cujo filtro (tabela, tipo de evento, igualdade de colunas)
casa com ele. `close()` encerra todas as assinaturas com ChannelClosedError.
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional

from app.application.shared.change_feed import ChangeEvent, IChangeFeed, IChangeStream
from app.domain.shared.errors import ChannelClosedError

logger = logging.getLogger(__name__)

_UNSUBSCRIBED = object()
_CLOSED = object()


class FeedStream(IChangeStream):
    def __init__(
        self,
        table: str,
        row_filter: Optional[Mapping[str, Any]] = None,
        event_types: Optional[Iterable[str]] = None,
    ) -> None:
        self.table = table
        self.row_filter = dict(row_filter or {})
        self.event_types = frozenset(event_types) if event_types else None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._finished = False

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.event_types is not None and event.event_type not in self.event_types:
            return False
        return all(event.record.get(k) == v for k, v in self.row_filter.items())

    def _put(self, item) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> "FeedStream":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _UNSUBSCRIBED:
            self._finished = True
            raise StopAsyncIteration
        if item is _CLOSED:
            self._finished = True
            raise ChannelClosedError(f"Feed encerrado (tabela {self.table})")
        return item


class InMemoryChangeFeed(IChangeFeed):
    def __init__(self) -> None:
        self._streams: list[FeedStream] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._streams)

    def subscribe(
        self,
        table: str,
        row_filter: Optional[Mapping[str, Any]] = None,
        event_types: Optional[Iterable[str]] = None,
    ) -> FeedStream:
        if self._closed:
            raise ChannelClosedError("Feed encerrado")
        stream = FeedStream(table, row_filter, event_types)
        self._streams.append(stream)
        logger.debug("Feed: assinatura %s %s", table, stream.row_filter)
        return stream

    def unsubscribe(self, stream: FeedStream) -> None:
        if stream in self._streams:
            self._streams.remove(stream)
            stream._put(_UNSUBSCRIBED)

    async def publish(self, event: ChangeEvent) -> None:
        if self._closed:
            logger.debug("Feed encerrado; evento %s/%s descartado", event.table, event.event_type)
            return
        for stream in list(self._streams):
            if stream.matches(event):
                stream._put(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        streams, self._streams = self._streams, []
        for stream in streams:
            stream._put(_CLOSED)
        logger.info("Feed encerrado (%d assinaturas)", len(streams))


@lru_cache
def get_change_feed() -> InMemoryChangeFeed:
    """Feed único do processo."""
    return InMemoryChangeFeed()
