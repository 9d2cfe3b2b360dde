"""Tests for MarketManager.buy_tokens."""

from unittest.mock import AsyncMock

import pytest

from src.rb_common.enums import EventType
from src.rb_common.errors import (
    ArrayLengthMismatchError,
    BinMisalignedError,
    BinOutOfRangeError,
    CostExceedsBudgetError,
    EmptyBatchError,
    InsufficientCollateralError,
    MarketNotFoundError,
)
from src.rb_common.fixed_point import to_wad
from src.rb_engine.application.service import EngineServices
from src.rb_engine.engine.manager import MarketManager
from src.rb_ledger.domain.token_id import encode_token_id
from src.rb_pricing.domain.pricing import calculate_cost

STARTING_BALANCE = to_wad(1_000)


class TestBuyTokens:
    async def test_first_buy_is_par(
        self, manager: MarketManager, services: EngineServices, market_id: int, alice: str
    ) -> None:
        cost = await manager.buy_tokens(alice, market_id, [0], [to_wad(100)], to_wad(100))
        assert cost == to_wad(100)

        market = manager.get_market_info(market_id)
        assert market.bin_quantity(0) == to_wad(100)
        assert market.total_supply == to_wad(100)
        assert market.collateral_balance == to_wad(100)
        assert await services.vault.balance_of(alice) == STARTING_BALANCE - to_wad(100)
        assert services.vault.custody_balance == to_wad(100)
        token_id = encode_token_id(market_id, 0)
        assert await services.ledger.balance_of(alice, token_id) == to_wad(100)

    async def test_empty_bin_is_discounted(
        self, manager: MarketManager, market_id: int, alice: str, bob: str
    ) -> None:
        await manager.buy_tokens(alice, market_id, [0], [to_wad(100)], to_wad(100))
        cost = await manager.buy_tokens(bob, market_id, [60], [to_wad(50)], to_wad(50))
        assert cost == calculate_cost(to_wad(50), 0, to_wad(100))
        assert 0 < cost < to_wad(50)

    async def test_bin_holding_everything_is_par(
        self, manager: MarketManager, market_id: int, alice: str, bob: str
    ) -> None:
        await manager.buy_tokens(alice, market_id, [0], [to_wad(100)], to_wad(100))
        cost = await manager.buy_tokens(bob, market_id, [0], [to_wad(50)], to_wad(50))
        assert cost == to_wad(50)

    async def test_multi_leg_prices_each_leg_on_running_state(
        self, manager: MarketManager, market_id: int, alice: str
    ) -> None:
        cost = await manager.buy_tokens(
            alice, market_id, [0, 60], [to_wad(100), to_wad(50)], to_wad(200)
        )
        assert cost == to_wad(100) + calculate_cost(to_wad(50), 0, to_wad(100))
        assert manager.get_market_info(market_id).total_supply == to_wad(150)

    async def test_zero_amount_legs_skipped(
        self, manager: MarketManager, services: EngineServices, market_id: int, alice: str
    ) -> None:
        await manager.buy_tokens(alice, market_id, [0, 60], [0, to_wad(10)], to_wad(10))
        assert manager.get_bin_quantity(market_id, 0) == 0
        (event,) = services.events.of_type(EventType.TOKENS_BOUGHT)
        assert event.bin_indices == (60,)
        assert event.amounts == (to_wad(10),)
        assert event.total_cost == to_wad(10)

    async def test_budget_exceeded(
        self, manager: MarketManager, services: EngineServices, market_id: int, alice: str
    ) -> None:
        with pytest.raises(CostExceedsBudgetError):
            await manager.buy_tokens(alice, market_id, [0], [to_wad(100)], to_wad(99))
        assert manager.get_market_info(market_id).total_supply == 0
        assert await services.vault.balance_of(alice) == STARTING_BALANCE

    async def test_insufficient_collateral_rolls_back(
        self, manager: MarketManager, services: EngineServices, market_id: int
    ) -> None:
        await services.vault.mint("carol", to_wad(5))
        with pytest.raises(InsufficientCollateralError):
            await manager.buy_tokens("carol", market_id, [0], [to_wad(10)], to_wad(10))
        market = manager.get_market_info(market_id)
        assert market.total_supply == 0
        assert market.collateral_balance == 0
        assert market.bins == {}
        assert services.events.of_type(EventType.TOKENS_BOUGHT) == []

    async def test_mint_failure_refunds_collateral(
        self, manager: MarketManager, services: EngineServices, market_id: int, alice: str
    ) -> None:
        services.ledger.mint_batch = AsyncMock(side_effect=RuntimeError("ledger down"))
        with pytest.raises(RuntimeError):
            await manager.buy_tokens(alice, market_id, [0], [to_wad(10)], to_wad(10))
        assert await services.vault.balance_of(alice) == STARTING_BALANCE
        assert services.vault.custody_balance == 0
        assert manager.get_market_info(market_id).total_supply == 0

    async def test_empty_batch(self, manager: MarketManager, market_id: int, alice: str) -> None:
        with pytest.raises(EmptyBatchError):
            await manager.buy_tokens(alice, market_id, [], [], to_wad(10))

    async def test_length_mismatch(
        self, manager: MarketManager, market_id: int, alice: str
    ) -> None:
        with pytest.raises(ArrayLengthMismatchError):
            await manager.buy_tokens(alice, market_id, [0, 60], [to_wad(1)], to_wad(10))

    async def test_misaligned_bin(self, manager: MarketManager, market_id: int, alice: str) -> None:
        with pytest.raises(BinMisalignedError):
            await manager.buy_tokens(alice, market_id, [30], [to_wad(1)], to_wad(10))

    async def test_out_of_range_bin(
        self, manager: MarketManager, market_id: int, alice: str
    ) -> None:
        with pytest.raises(BinOutOfRangeError):
            await manager.buy_tokens(alice, market_id, [180], [to_wad(1)], to_wad(10))

    async def test_bad_leg_rejects_whole_batch(
        self, manager: MarketManager, services: EngineServices, market_id: int, alice: str
    ) -> None:
        with pytest.raises(BinOutOfRangeError):
            await manager.buy_tokens(
                alice, market_id, [0, 180], [to_wad(1), to_wad(1)], to_wad(10)
            )
        assert manager.get_bin_quantity(market_id, 0) == 0
        assert await services.vault.balance_of(alice) == STARTING_BALANCE

    async def test_unknown_market(self, manager: MarketManager, alice: str) -> None:
        with pytest.raises(MarketNotFoundError):
            await manager.buy_tokens(alice, 9, [0], [to_wad(1)], to_wad(1))
