# src/rb_engine/application/service.py
"""Process-wide engine wiring.

One MarketManager per process, backed by the in-memory ledger, vault and
event log. Routers receive it through the get_engine_services dependency so
tests can swap in a fresh instance.
"""

from dataclasses import dataclass, field

from src.rb_engine.engine.manager import MarketManager
from src.rb_engine.infrastructure.event_log import InMemoryEventLog
from src.rb_ledger.infrastructure.memory import InMemoryCollateralVault, InMemoryPositionLedger


@dataclass
class EngineServices:
    ledger: InMemoryPositionLedger = field(default_factory=InMemoryPositionLedger)
    vault: InMemoryCollateralVault = field(default_factory=InMemoryCollateralVault)
    events: InMemoryEventLog = field(default_factory=InMemoryEventLog)
    manager: MarketManager = field(init=False)

    def __post_init__(self) -> None:
        self.manager = MarketManager(ledger=self.ledger, vault=self.vault, events=self.events)


_services: EngineServices | None = None


def get_engine_services() -> EngineServices:
    global _services  # noqa: PLW0603
    if _services is None:
        _services = EngineServices()
    return _services


def reset_engine_services() -> EngineServices:
    """Drop all engine state and start over (tests, local dev)."""
    global _services  # noqa: PLW0603
    _services = EngineServices()
    return _services
