"""Engine notification events.

Each event carries every parameter needed to replay the state change
without reading engine storage.
"""

from dataclasses import dataclass
from typing import ClassVar, Protocol

from src.rb_common.enums import EventType


@dataclass(frozen=True)
class MarketCreated:
    event_type: ClassVar[EventType] = EventType.MARKET_CREATED

    market_id: int
    tick_spacing: int
    min_tick: int
    max_tick: int
    open_timestamp: int
    close_timestamp: int


@dataclass(frozen=True)
class MarketActivated:
    event_type: ClassVar[EventType] = EventType.MARKET_ACTIVATED

    market_id: int


@dataclass(frozen=True)
class MarketDeactivated:
    event_type: ClassVar[EventType] = EventType.MARKET_DEACTIVATED

    market_id: int


@dataclass(frozen=True)
class TokensBought:
    event_type: ClassVar[EventType] = EventType.TOKENS_BOUGHT

    market_id: int
    buyer: str
    bin_indices: tuple[int, ...]
    amounts: tuple[int, ...]
    total_cost: int


@dataclass(frozen=True)
class TokensSold:
    event_type: ClassVar[EventType] = EventType.TOKENS_SOLD

    market_id: int
    seller: str
    bin_indices: tuple[int, ...]
    amounts: tuple[int, ...]
    total_revenue: int


@dataclass(frozen=True)
class MarketClosed:
    event_type: ClassVar[EventType] = EventType.MARKET_CLOSED

    market_id: int
    final_price: int
    winning_bin: int
    total_reward_pool: int
    total_winning_tokens: int


@dataclass(frozen=True)
class RewardClaimed:
    event_type: ClassVar[EventType] = EventType.REWARD_CLAIMED

    market_id: int
    claimant: str
    winning_bin: int
    token_amount: int
    reward: int


@dataclass(frozen=True)
class CollateralWithdrawn:
    event_type: ClassVar[EventType] = EventType.COLLATERAL_WITHDRAWN

    recipient: str
    amount: int


EngineEvent = (
    MarketCreated
    | MarketActivated
    | MarketDeactivated
    | TokensBought
    | TokensSold
    | MarketClosed
    | RewardClaimed
    | CollateralWithdrawn
)


class EventSinkProtocol(Protocol):
    async def publish(self, event: EngineEvent) -> None: ...
