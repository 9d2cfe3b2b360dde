"""Pydantic schemas for rb_engine API requests and responses.

Wad amounts (18-decimal fixed point) exceed the 2**53 range JSON numbers
survive in most clients, so responses render them as decimal strings.
Requests accept either a JSON integer or a string of digits.
"""

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

from src.rb_common.fixed_point import MAX_UINT256, wad_to_display
from src.rb_market.domain.models import Market

# ---------------------------------------------------------------------------
# Wad field types
# ---------------------------------------------------------------------------


def _parse_uint(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    if isinstance(value, str):
        if not value.isdigit():
            raise ValueError("amount must be a string of digits")
        value = int(value)
    if not isinstance(value, int):
        raise ValueError("amount must be an integer")
    if not 0 <= value <= MAX_UINT256:
        raise ValueError("amount must be within uint256")
    return value


WadIn = Annotated[int, BeforeValidator(_parse_uint)]
WadOut = Annotated[int, PlainSerializer(str, return_type=str)]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    tick_spacing: int
    min_tick: int
    max_tick: int
    close_timestamp: int = Field(ge=0)


class CreateBatchMarketsRequest(BaseModel):
    tick_spacings: list[int]
    min_ticks: list[int]
    max_ticks: list[int]
    close_timestamps: list[int]


class BuyRequest(BaseModel):
    bin_indices: list[int]
    amounts: list[WadIn]
    max_collateral: WadIn


class SellRequest(BaseModel):
    bin_indices: list[int]
    amounts: list[WadIn]
    min_revenue: WadIn = 0


class CloseMarketRequest(BaseModel):
    actual_price: int


class ClaimRequest(BaseModel):
    token_amount: WadIn = 0  # 0 = claim everything held


class WithdrawRequest(BaseModel):
    recipient: str = Field(min_length=1)


class MintCollateralRequest(BaseModel):
    account: str = Field(min_length=1)
    amount: WadIn


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketInfo(BaseModel):
    id: int
    status: str
    active: bool
    closed: bool
    tick_spacing: int
    min_tick: int
    max_tick: int
    total_supply: WadOut
    collateral_balance: WadOut
    collateral_balance_display: str
    total_reward_pool: WadOut
    winning_bin: int | None
    final_price: int | None
    open_timestamp: int
    close_timestamp: int

    @classmethod
    def from_domain(cls, m: Market) -> "MarketInfo":
        return cls(
            id=m.id,
            status=m.status.value,
            active=m.active,
            closed=m.closed,
            tick_spacing=m.tick_spacing,
            min_tick=m.min_tick,
            max_tick=m.max_tick,
            total_supply=m.total_supply,
            collateral_balance=m.collateral_balance,
            collateral_balance_display=wad_to_display(m.collateral_balance),
            total_reward_pool=m.total_reward_pool,
            winning_bin=m.winning_bin if m.closed else None,
            final_price=m.final_price if m.closed else None,
            open_timestamp=m.open_timestamp,
            close_timestamp=m.close_timestamp,
        )


class CreateMarketsResponse(BaseModel):
    market_ids: list[int]


class BinQuantityResponse(BaseModel):
    market_id: int
    bin_index: int
    quantity: WadOut


class BinQuantitiesResponse(BaseModel):
    market_id: int
    bin_indices: list[int]
    quantities: list[WadOut]


class QuoteResponse(BaseModel):
    market_id: int
    bin_index: int
    amount: WadOut  # units bought / sold
    collateral: WadOut  # cost paid / revenue received


class BuyResponse(BaseModel):
    market_id: int
    total_cost: WadOut


class SellResponse(BaseModel):
    market_id: int
    total_revenue: WadOut


class CloseMarketResponse(BaseModel):
    market_id: int
    winning_bin: int
    total_reward_pool: WadOut


class ClaimResponse(BaseModel):
    market_id: int
    reward: WadOut


class LastClosedResponse(BaseModel):
    last_closed_market_id: int | None
    market_count: int


class PriceToBinResponse(BaseModel):
    price: int
    tick_spacing: int
    bin_index: int


class PositionResponse(BaseModel):
    account: str
    market_id: int
    bin_index: int
    token_id: str
    balance: WadOut


class CollateralBalanceResponse(BaseModel):
    account: str
    balance: WadOut


class WithdrawResponse(BaseModel):
    recipient: str
    amount: WadOut
