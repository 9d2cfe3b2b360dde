"""rb_ledger REST endpoints: position balances and collateral.

GET  /positions/{market_id}/{bin_index} — caller's tokens in one bin
GET  /collateral/balance                — caller's free collateral
POST /collateral/mint                   — faucet (operator only, capped)
POST /collateral/withdraw-all           — sweep engine custody (operator only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from config.settings import settings
from src.rb_common.errors import FaucetLimitExceededError
from src.rb_common.response import ApiResponse, success_response
from src.rb_engine.application.schemas import (
    CollateralBalanceResponse,
    MintCollateralRequest,
    PositionResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from src.rb_engine.application.service import EngineServices, get_engine_services
from src.rb_gateway.auth.dependencies import get_account_id, require_operator
from src.rb_ledger.domain.token_id import encode_token_id

router = APIRouter(tags=["ledger"])

Services = Annotated[EngineServices, Depends(get_engine_services)]
Account = Annotated[str, Depends(get_account_id)]
Operator = Annotated[str, Depends(require_operator)]


@router.get("/positions/{market_id}/{bin_index}")
async def get_position(
    market_id: int, bin_index: int, request: Request, services: Services, account: Account
) -> ApiResponse:
    # Validates the market exists; any bin index is a legal lookup
    services.manager.get_market_info(market_id)
    token_id = encode_token_id(market_id, bin_index)
    balance = await services.ledger.balance_of(account, token_id)
    result = PositionResponse(
        account=account,
        market_id=market_id,
        bin_index=bin_index,
        token_id=str(token_id),
        balance=balance,
    )
    return success_response(result.model_dump(), request_id=request.state.request_id)


@router.get("/collateral/balance")
async def get_collateral_balance(
    request: Request, services: Services, account: Account
) -> ApiResponse:
    balance = await services.vault.balance_of(account)
    result = CollateralBalanceResponse(account=account, balance=balance)
    return success_response(result.model_dump(), request_id=request.state.request_id)


@router.post("/collateral/mint")
async def mint_collateral(
    body: MintCollateralRequest, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    if body.amount > settings.FAUCET_MAX_AMOUNT:
        raise FaucetLimitExceededError(body.amount, settings.FAUCET_MAX_AMOUNT)
    await services.vault.mint(body.account, body.amount)
    balance = await services.vault.balance_of(body.account)
    result = CollateralBalanceResponse(account=body.account, balance=balance)
    return success_response(result.model_dump(), request_id=request.state.request_id)


@router.post("/collateral/withdraw-all")
async def withdraw_all_collateral(
    body: WithdrawRequest, request: Request, services: Services, operator: Operator
) -> ApiResponse:
    amount = await services.manager.withdraw_all_collateral(body.recipient)
    result = WithdrawResponse(recipient=body.recipient, amount=amount)
    return success_response(result.model_dump(), request_id=request.state.request_id)
