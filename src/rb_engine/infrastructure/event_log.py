"""Append-only in-memory event log.

Called from MarketManager while it holds the engine lock, so the log order
is the order in which state changes were applied.
"""

import logging
from dataclasses import asdict

from src.rb_common.enums import EventType
from src.rb_engine.domain.events import EngineEvent

logger = logging.getLogger(__name__)


class InMemoryEventLog:
    def __init__(self) -> None:
        self._events: list[EngineEvent] = []

    async def publish(self, event: EngineEvent) -> None:
        self._events.append(event)
        logger.info("event %s %s", event.event_type.value, asdict(event))

    @property
    def events(self) -> list[EngineEvent]:
        return list(self._events)

    def of_type(self, event_type: EventType) -> list[EngineEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def for_market(self, market_id: int) -> list[EngineEvent]:
        return [e for e in self._events if getattr(e, "market_id", None) == market_id]
