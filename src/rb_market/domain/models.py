"""Domain models for rb_market — pure dataclasses, no business logic."""

from dataclasses import dataclass, field

from src.rb_common.enums import MarketStatus


@dataclass
class Market:
    id: int
    tick_spacing: int
    min_tick: int
    max_tick: int
    open_timestamp: int
    close_timestamp: int
    active: bool = True
    closed: bool = False
    total_supply: int = 0  # T: sum of every bin quantity
    collateral_balance: int = 0
    total_reward_pool: int = 0  # collateral_balance snapshot taken at close
    winning_bin: int = 0  # valid only when closed
    final_price: int = 0  # valid only when closed
    bins: dict[int, int] = field(default_factory=dict)  # sparse: absent == 0

    @property
    def status(self) -> MarketStatus:
        if self.closed:
            return MarketStatus.CLOSED
        return MarketStatus.ACTIVE if self.active else MarketStatus.INACTIVE

    def bin_quantity(self, bin_index: int) -> int:
        return self.bins.get(bin_index, 0)


@dataclass(frozen=True)
class MarketSnapshot:
    """Mutable fields of a Market, captured so a failed operation can be undone."""

    active: bool
    closed: bool
    total_supply: int
    collateral_balance: int
    total_reward_pool: int
    winning_bin: int
    final_price: int
    bins: dict[int, int]

    @classmethod
    def capture(cls, market: Market) -> "MarketSnapshot":
        return cls(
            active=market.active,
            closed=market.closed,
            total_supply=market.total_supply,
            collateral_balance=market.collateral_balance,
            total_reward_pool=market.total_reward_pool,
            winning_bin=market.winning_bin,
            final_price=market.final_price,
            bins=dict(market.bins),
        )

    def restore(self, market: Market) -> None:
        market.active = self.active
        market.closed = self.closed
        market.total_supply = self.total_supply
        market.collateral_balance = self.collateral_balance
        market.total_reward_pool = self.total_reward_pool
        market.winning_bin = self.winning_bin
        market.final_price = self.final_price
        market.bins = dict(self.bins)
