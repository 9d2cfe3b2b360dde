"""Global enums."""

from enum import Enum


class MarketStatus(str, Enum):
    """Derived view of the (active, closed) flag pair, for API output only."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CLOSED = "CLOSED"


class EventType(str, Enum):
    MARKET_CREATED = "MARKET_CREATED"
    MARKET_ACTIVATED = "MARKET_ACTIVATED"
    MARKET_DEACTIVATED = "MARKET_DEACTIVATED"
    TOKENS_BOUGHT = "TOKENS_BOUGHT"
    TOKENS_SOLD = "TOKENS_SOLD"
    MARKET_CLOSED = "MARKET_CLOSED"
    REWARD_CLAIMED = "REWARD_CLAIMED"
    COLLATERAL_WITHDRAWN = "COLLATERAL_WITHDRAWN"
