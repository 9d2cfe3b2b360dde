"""rb_engine REST endpoints.

Operator only:
POST /markets                         — create one market
POST /markets/batch                   — create N markets atomically
POST /markets/close                   — resolve the next market in id order
POST /markets/{market_id}/activate
POST /markets/{market_id}/deactivate

Any account:
GET  /markets/last-closed             — last closed id + market count
GET  /markets/price-to-bin            — price -> bin bucketing
GET  /markets/{market_id}             — full market record
GET  /markets/{market_id}/bins        — quantities for a bin range
GET  /markets/{market_id}/bins/{bin_index}
GET  /markets/{market_id}/quote/cost  — buy cost for an amount
GET  /markets/{market_id}/quote/x     — amount for a budget
GET  /markets/{market_id}/quote/sell  — sell revenue for an amount
POST /markets/{market_id}/buy
POST /markets/{market_id}/sell
POST /markets/{market_id}/claim
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.rb_common.response import ApiResponse, success_response
from src.rb_engine.application.schemas import (
    BinQuantitiesResponse,
    BinQuantityResponse,
    BuyRequest,
    BuyResponse,
    ClaimRequest,
    ClaimResponse,
    CloseMarketRequest,
    CloseMarketResponse,
    CreateBatchMarketsRequest,
    CreateMarketRequest,
    CreateMarketsResponse,
    LastClosedResponse,
    MarketInfo,
    PriceToBinResponse,
    QuoteResponse,
    SellRequest,
    SellResponse,
)
from src.rb_engine.application.service import EngineServices, get_engine_services
from src.rb_gateway.auth.dependencies import get_account_id, require_operator

router = APIRouter(prefix="/markets", tags=["markets"])

Services = Annotated[EngineServices, Depends(get_engine_services)]
Account = Annotated[str, Depends(get_account_id)]
Operator = Annotated[str, Depends(require_operator)]
WadQuery = Annotated[str, Query(pattern=r"^\d+$", max_length=78)]
BinQuery = Annotated[int, Query()]


def _respond(request: Request, data: object) -> ApiResponse:
    return success_response(data, request_id=request.state.request_id)


# ---------------------------------------------------------------------------
# Operator endpoints
# ---------------------------------------------------------------------------


@router.post("")
async def create_market(
    body: CreateMarketRequest, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    market_id = await services.manager.create_market(
        body.tick_spacing, body.min_tick, body.max_tick, body.close_timestamp
    )
    return _respond(request, CreateMarketsResponse(market_ids=[market_id]).model_dump())


@router.post("/batch")
async def create_batch_markets(
    body: CreateBatchMarketsRequest, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    market_ids = await services.manager.create_batch_markets(
        body.tick_spacings, body.min_ticks, body.max_ticks, body.close_timestamps
    )
    return _respond(request, CreateMarketsResponse(market_ids=market_ids).model_dump())


@router.post("/close")
async def close_market(
    body: CloseMarketRequest, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    market_id = await services.manager.close_market(body.actual_price)
    market = services.manager.get_market_info(market_id)
    result = CloseMarketResponse(
        market_id=market_id,
        winning_bin=market.winning_bin,
        total_reward_pool=market.total_reward_pool,
    )
    return _respond(request, result.model_dump())


@router.post("/{market_id}/activate")
async def activate_market(
    market_id: int, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    await services.manager.activate_market(market_id)
    market = services.manager.get_market_info(market_id)
    return _respond(request, MarketInfo.from_domain(market).model_dump())


@router.post("/{market_id}/deactivate")
async def deactivate_market(
    market_id: int, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    await services.manager.deactivate_market(market_id)
    market = services.manager.get_market_info(market_id)
    return _respond(request, MarketInfo.from_domain(market).model_dump())


# ---------------------------------------------------------------------------
# Read-only endpoints
# ---------------------------------------------------------------------------


@router.get("/last-closed")
async def get_last_closed(request: Request, services: Services) -> ApiResponse:
    result = LastClosedResponse(
        last_closed_market_id=services.manager.get_last_closed_market_id(),
        market_count=services.manager.market_count,
    )
    return _respond(request, result.model_dump())


@router.get("/price-to-bin")
async def price_to_bin(
    request: Request,
    services: Services,
    price: int = Query(...),
    tick_spacing: int = Query(..., gt=0),
) -> ApiResponse:
    bin_index = services.manager.price_to_bin_index(price, tick_spacing)
    result = PriceToBinResponse(price=price, tick_spacing=tick_spacing, bin_index=bin_index)
    return _respond(request, result.model_dump())


@router.get("/{market_id}")
async def get_market(market_id: int, request: Request, services: Services) -> ApiResponse:
    market = services.manager.get_market_info(market_id)
    return _respond(request, MarketInfo.from_domain(market).model_dump())


@router.get("/{market_id}/bins")
async def get_bin_quantities(
    market_id: int,
    request: Request,
    services: Services,
    from_bin: int = Query(...),
    to_bin: int = Query(...),
) -> ApiResponse:
    bin_indices, quantities = services.manager.get_bin_quantities_in_range(
        market_id, from_bin, to_bin
    )
    result = BinQuantitiesResponse(
        market_id=market_id, bin_indices=bin_indices, quantities=quantities
    )
    return _respond(request, result.model_dump())


@router.get("/{market_id}/bins/{bin_index}")
async def get_bin_quantity(
    market_id: int, bin_index: int, request: Request, services: Services
) -> ApiResponse:
    quantity = services.manager.get_bin_quantity(market_id, bin_index)
    result = BinQuantityResponse(market_id=market_id, bin_index=bin_index, quantity=quantity)
    return _respond(request, result.model_dump())


@router.get("/{market_id}/quote/cost")
async def quote_cost(
    market_id: int,
    request: Request,
    services: Services,
    bin_index: BinQuery,
    amount: WadQuery,
) -> ApiResponse:
    units = int(amount)
    cost = services.manager.calculate_bin_cost(market_id, bin_index, units)
    result = QuoteResponse(market_id=market_id, bin_index=bin_index, amount=units, collateral=cost)
    return _respond(request, result.model_dump())


@router.get("/{market_id}/quote/x")
async def quote_x(
    market_id: int,
    request: Request,
    services: Services,
    bin_index: BinQuery,
    cost: WadQuery,
) -> ApiResponse:
    budget = int(cost)
    units = services.manager.calculate_x_for_bin(market_id, bin_index, budget)
    result = QuoteResponse(
        market_id=market_id, bin_index=bin_index, amount=units, collateral=budget
    )
    return _respond(request, result.model_dump())


@router.get("/{market_id}/quote/sell")
async def quote_sell(
    market_id: int,
    request: Request,
    services: Services,
    bin_index: BinQuery,
    amount: WadQuery,
) -> ApiResponse:
    units = int(amount)
    revenue = services.manager.calculate_bin_sell_cost(market_id, bin_index, units)
    result = QuoteResponse(
        market_id=market_id, bin_index=bin_index, amount=units, collateral=revenue
    )
    return _respond(request, result.model_dump())


# ---------------------------------------------------------------------------
# Trading endpoints
# ---------------------------------------------------------------------------


@router.post("/{market_id}/buy")
async def buy_tokens(
    market_id: int, body: BuyRequest, request: Request, services: Services, account: Account
) -> ApiResponse:
    total_cost = await services.manager.buy_tokens(
        account, market_id, body.bin_indices, body.amounts, body.max_collateral
    )
    return _respond(request, BuyResponse(market_id=market_id, total_cost=total_cost).model_dump())


@router.post("/{market_id}/sell")
async def sell_tokens(
    market_id: int, body: SellRequest, request: Request, services: Services, account: Account
) -> ApiResponse:
    total_revenue = await services.manager.sell_tokens(
        account, market_id, body.bin_indices, body.amounts, body.min_revenue
    )
    result = SellResponse(market_id=market_id, total_revenue=total_revenue)
    return _respond(request, result.model_dump())


@router.post("/{market_id}/claim")
async def claim_reward(
    market_id: int, body: ClaimRequest, request: Request, services: Services, account: Account
) -> ApiResponse:
    reward = await services.manager.claim_reward(account, market_id, body.token_amount)
    return _respond(request, ClaimResponse(market_id=market_id, reward=reward).model_dump())
