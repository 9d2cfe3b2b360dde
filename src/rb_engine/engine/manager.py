"""MarketManager — stateful orchestrator for range-bin markets.

Every mutating call runs under one engine-wide asyncio.Lock: prices depend on
the live (q, T) of a market, and closing walks market ids in order across the
whole engine, so there is a single writer. Each operation validates fully,
then mutates, then calls the ledger / vault. A collaborator failure after
mutation restores the market snapshot and re-raises.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import replace

from config.settings import settings
from src.rb_common.datetime_utils import unix_now
from src.rb_common.errors import (
    ArrayLengthMismatchError,
    BinRangeTooWideError,
    CostExceedsBudgetError,
    EmptyBatchError,
    InsufficientBinLiquidityError,
    InsufficientPositionBalanceError,
    InvalidBinRangeError,
    MarketAlreadyClosedError,
    MarketNotActiveError,
    MarketNotClosedError,
    MarketNotFoundError,
    NoMoreMarketsToCloseError,
    NoTokensToClaimError,
    PriceOutsideMarketRangeError,
    RevenueBelowMinimumError,
)
from src.rb_common.fixed_point import checked_add, checked_sub, mul_div
from src.rb_engine.domain.events import (
    CollateralWithdrawn,
    EngineEvent,
    EventSinkProtocol,
    MarketActivated,
    MarketClosed,
    MarketCreated,
    MarketDeactivated,
    RewardClaimed,
    TokensBought,
    TokensSold,
)
from src.rb_engine.infrastructure.event_log import InMemoryEventLog
from src.rb_ledger.domain.repository import CollateralVaultProtocol, PositionLedgerProtocol
from src.rb_ledger.domain.token_id import encode_token_id
from src.rb_market.domain.bookkeeping import (
    add_to_bin,
    credit_collateral,
    debit_collateral,
    remove_from_bin,
)
from src.rb_market.domain.invariants import verify_market_invariants
from src.rb_market.domain.models import Market, MarketSnapshot
from src.rb_market.domain.ticks import (
    is_aligned,
    is_in_range,
    price_to_bin_index,
    validate_bin_index,
    validate_tick_config,
)
from src.rb_pricing.domain.pricing import calculate_cost, calculate_sell_cost, calculate_x

logger = logging.getLogger(__name__)


class MarketManager:
    def __init__(
        self,
        ledger: PositionLedgerProtocol,
        vault: CollateralVaultProtocol,
        events: EventSinkProtocol | None = None,
    ) -> None:
        self._ledger = ledger
        self._vault = vault
        self._events: EventSinkProtocol = events or InMemoryEventLog()
        self._markets: dict[int, Market] = {}
        self._next_market_id = 0
        self._last_closed_market_id: int | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Market creation and lifecycle
    # ------------------------------------------------------------------

    async def create_market(
        self, tick_spacing: int, min_tick: int, max_tick: int, close_timestamp: int
    ) -> int:
        async with self._lock:
            validate_tick_config(tick_spacing, min_tick, max_tick)
            market = await self._open_market(tick_spacing, min_tick, max_tick, close_timestamp)
            return market.id

    async def create_batch_markets(
        self,
        tick_spacings: Sequence[int],
        min_ticks: Sequence[int],
        max_ticks: Sequence[int],
        close_timestamps: Sequence[int],
    ) -> list[int]:
        """Create N markets atomically: any invalid element rejects the batch."""
        n = len(tick_spacings)
        if not (len(min_ticks) == len(max_ticks) == len(close_timestamps) == n):
            raise ArrayLengthMismatchError()
        async with self._lock:
            for spacing, lo, hi in zip(tick_spacings, min_ticks, max_ticks):
                validate_tick_config(spacing, lo, hi)
            market_ids = []
            for spacing, lo, hi, close_ts in zip(
                tick_spacings, min_ticks, max_ticks, close_timestamps
            ):
                market = await self._open_market(spacing, lo, hi, close_ts)
                market_ids.append(market.id)
            return market_ids

    async def _open_market(
        self, tick_spacing: int, min_tick: int, max_tick: int, close_timestamp: int
    ) -> Market:
        market = Market(
            id=self._next_market_id,
            tick_spacing=tick_spacing,
            min_tick=min_tick,
            max_tick=max_tick,
            open_timestamp=unix_now(),
            close_timestamp=close_timestamp,
        )
        self._markets[market.id] = market
        self._next_market_id += 1
        logger.info(
            "Market created: id=%d spacing=%d range=[%d, %d]",
            market.id, tick_spacing, min_tick, max_tick,
        )
        await self._publish(
            MarketCreated(
                market_id=market.id,
                tick_spacing=tick_spacing,
                min_tick=min_tick,
                max_tick=max_tick,
                open_timestamp=market.open_timestamp,
                close_timestamp=close_timestamp,
            )
        )
        return market

    async def activate_market(self, market_id: int) -> None:
        async with self._lock:
            market = self._require_market(market_id)
            if market.closed:
                raise MarketAlreadyClosedError(market_id)
            if market.active:
                return
            market.active = True
            logger.info("Market activated: id=%d", market_id)
            await self._publish(MarketActivated(market_id=market_id))

    async def deactivate_market(self, market_id: int) -> None:
        async with self._lock:
            market = self._require_market(market_id)
            if market.closed:
                raise MarketAlreadyClosedError(market_id)
            if not market.active:
                return
            market.active = False
            logger.info("Market deactivated: id=%d", market_id)
            await self._publish(MarketDeactivated(market_id=market_id))

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def buy_tokens(
        self,
        account: str,
        market_id: int,
        bin_indices: Sequence[int],
        amounts: Sequence[int],
        max_collateral: int,
    ) -> int:
        """Buy positions in one or more bins. Returns total collateral charged."""
        async with self._lock:
            market = self._require_market(market_id)
            self._require_tradable(market)
            self._require_batch(bin_indices, amounts)

            # Price every leg against the running (q, T) before touching state
            staged_q: dict[int, int] = {}
            running_total = market.total_supply
            total_cost = 0
            legs: list[tuple[int, int]] = []
            for bin_index, amount in zip(bin_indices, amounts):
                if amount == 0:
                    continue
                validate_bin_index(market, bin_index)
                q = staged_q.get(bin_index, market.bin_quantity(bin_index))
                total_cost = checked_add(total_cost, calculate_cost(amount, q, running_total))
                staged_q[bin_index] = checked_add(q, amount)
                running_total = checked_add(running_total, amount)
                legs.append((bin_index, amount))

            if total_cost > max_collateral:
                raise CostExceedsBudgetError(total_cost, max_collateral)

            token_ids = [encode_token_id(market.id, b) for b, _ in legs]
            leg_amounts = [a for _, a in legs]
            async with self._atomic(market):
                for bin_index, amount in legs:
                    add_to_bin(market, bin_index, amount)
                credit_collateral(market, total_cost)
                verify_market_invariants(market)

                await self._vault.pull(account, total_cost)
                if legs:
                    try:
                        await self._ledger.mint_batch(account, token_ids, leg_amounts)
                    except Exception:
                        await self._vault.push(account, total_cost)
                        raise

            logger.info(
                "Tokens bought: market=%d buyer=%s legs=%d cost=%d T=%d",
                market.id, account, len(legs), total_cost, market.total_supply,
            )
            await self._publish(
                TokensBought(
                    market_id=market.id,
                    buyer=account,
                    bin_indices=tuple(b for b, _ in legs),
                    amounts=tuple(leg_amounts),
                    total_cost=total_cost,
                )
            )
            return total_cost

    async def sell_tokens(
        self,
        account: str,
        market_id: int,
        bin_indices: Sequence[int],
        amounts: Sequence[int],
        min_revenue: int,
    ) -> int:
        """Sell positions back to the market. Returns total collateral paid out.

        Revenue is path dependent: selling in the exact reverse order of the
        matching buys restores the market, any other order generally does not.
        """
        async with self._lock:
            market = self._require_market(market_id)
            self._require_tradable(market)
            self._require_batch(bin_indices, amounts)

            staged_q: dict[int, int] = {}
            pending_burn: dict[int, int] = {}
            running_total = market.total_supply
            total_revenue = 0
            legs: list[tuple[int, int]] = []
            for bin_index, amount in zip(bin_indices, amounts):
                if amount == 0:
                    continue
                validate_bin_index(market, bin_index)
                token_id = encode_token_id(market.id, bin_index)
                held = await self._ledger.balance_of(account, token_id)
                wanted = checked_add(pending_burn.get(token_id, 0), amount)
                if wanted > held:
                    raise InsufficientPositionBalanceError(requested=wanted, available=held)
                q = staged_q.get(bin_index, market.bin_quantity(bin_index))
                if amount > q:
                    raise InsufficientBinLiquidityError(requested=amount, available=q)
                total_revenue = checked_add(
                    total_revenue, calculate_sell_cost(amount, q, running_total)
                )
                pending_burn[token_id] = wanted
                staged_q[bin_index] = q - amount
                running_total = checked_sub(running_total, amount)
                legs.append((bin_index, amount))

            if total_revenue < min_revenue:
                raise RevenueBelowMinimumError(total_revenue, min_revenue)

            token_ids = [encode_token_id(market.id, b) for b, _ in legs]
            leg_amounts = [a for _, a in legs]
            async with self._atomic(market):
                for bin_index, amount in legs:
                    remove_from_bin(market, bin_index, amount)
                debit_collateral(market, total_revenue)
                verify_market_invariants(market)

                if legs:
                    await self._ledger.burn_batch(account, token_ids, leg_amounts)
                try:
                    await self._vault.push(account, total_revenue)
                except Exception:
                    if legs:
                        await self._ledger.mint_batch(account, token_ids, leg_amounts)
                    raise

            logger.info(
                "Tokens sold: market=%d seller=%s legs=%d revenue=%d T=%d",
                market.id, account, len(legs), total_revenue, market.total_supply,
            )
            await self._publish(
                TokensSold(
                    market_id=market.id,
                    seller=account,
                    bin_indices=tuple(b for b, _ in legs),
                    amounts=tuple(leg_amounts),
                    total_revenue=total_revenue,
                )
            )
            return total_revenue

    # ------------------------------------------------------------------
    # Resolution and claims
    # ------------------------------------------------------------------

    async def close_market(self, actual_price: int) -> int:
        """Resolve the next market in id order at `actual_price`. Returns its id."""
        async with self._lock:
            next_id = self._next_market_to_close()
            if next_id >= self._next_market_id:
                raise NoMoreMarketsToCloseError()
            market = self._markets[next_id]
            if not market.active:
                raise MarketNotActiveError(market.id)
            if market.closed:
                raise MarketAlreadyClosedError(market.id)

            winning_bin = price_to_bin_index(actual_price, market.tick_spacing)
            if not is_in_range(winning_bin, market):
                raise PriceOutsideMarketRangeError(actual_price, winning_bin)

            market.closed = True
            market.winning_bin = winning_bin
            market.final_price = actual_price
            # Fixed numerator for every later claim; the live balance drains
            market.total_reward_pool = market.collateral_balance
            self._last_closed_market_id = market.id

            logger.info(
                "Market closed: id=%d price=%d winning_bin=%d pool=%d winning_tokens=%d",
                market.id, actual_price, winning_bin,
                market.total_reward_pool, market.bin_quantity(winning_bin),
            )
            await self._publish(
                MarketClosed(
                    market_id=market.id,
                    final_price=actual_price,
                    winning_bin=winning_bin,
                    total_reward_pool=market.total_reward_pool,
                    total_winning_tokens=market.bin_quantity(winning_bin),
                )
            )
            return market.id

    async def claim_reward(self, account: str, market_id: int, token_amount: int) -> int:
        """Burn winning positions for a pro-rata share of the reward pool.

        token_amount == 0 claims the whole balance. Returns the reward paid.
        """
        async with self._lock:
            market = self._require_market(market_id)
            if not market.closed:
                raise MarketNotClosedError(market_id)

            token_id = encode_token_id(market.id, market.winning_bin)
            held = await self._ledger.balance_of(account, token_id)
            if held == 0:
                raise NoTokensToClaimError()
            claim_amount = held if token_amount == 0 else token_amount
            if claim_amount > held:
                raise InsufficientPositionBalanceError(requested=claim_amount, available=held)

            # q[winning_bin] is frozen at close, so this is the close-time total
            total_winning_tokens = market.bin_quantity(market.winning_bin)
            reward = mul_div(claim_amount, market.total_reward_pool, total_winning_tokens)

            async with self._atomic(market):
                debit_collateral(market, reward)
                verify_market_invariants(market)
                await self._ledger.burn_batch(account, [token_id], [claim_amount])
                try:
                    await self._vault.push(account, reward)
                except Exception:
                    await self._ledger.mint_batch(account, [token_id], [claim_amount])
                    raise

            logger.info(
                "Reward claimed: market=%d claimant=%s tokens=%d reward=%d remaining=%d",
                market.id, account, claim_amount, reward, market.collateral_balance,
            )
            await self._publish(
                RewardClaimed(
                    market_id=market.id,
                    claimant=account,
                    winning_bin=market.winning_bin,
                    token_amount=claim_amount,
                    reward=reward,
                )
            )
            return reward

    async def withdraw_all_collateral(self, recipient: str) -> int:
        """Sweep every market's collateral to `recipient`. Returns the amount moved."""
        async with self._lock:
            markets = list(self._markets.values())
            total = 0
            for market in markets:
                total = checked_add(total, market.collateral_balance)
            if total == 0:
                return 0
            async with self._atomic(*markets):
                for market in markets:
                    debit_collateral(market, market.collateral_balance)
                await self._vault.push(recipient, total)

            logger.warning("All collateral withdrawn: recipient=%s amount=%d", recipient, total)
            await self._publish(CollateralWithdrawn(recipient=recipient, amount=total))
            return total

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def market_count(self) -> int:
        return self._next_market_id

    def get_market_info(self, market_id: int) -> Market:
        """Detached copy of the market record."""
        market = self._require_market(market_id)
        return replace(market, bins=dict(market.bins))

    def get_bin_quantity(self, market_id: int, bin_index: int) -> int:
        return self._require_market(market_id).bin_quantity(bin_index)

    def get_bin_quantities_in_range(
        self, market_id: int, from_bin: int, to_bin: int
    ) -> tuple[list[int], list[int]]:
        """Every bin in [from_bin, to_bin] (zeros included) with its quantity."""
        market = self._require_market(market_id)
        if from_bin > to_bin:
            raise InvalidBinRangeError(from_bin, to_bin)
        validate_bin_index(market, from_bin)
        validate_bin_index(market, to_bin)
        bin_count = (to_bin - from_bin) // market.tick_spacing + 1
        if bin_count > settings.MAX_BIN_RANGE_QUERY:
            raise BinRangeTooWideError(bin_count, settings.MAX_BIN_RANGE_QUERY)
        bin_indices = list(range(from_bin, to_bin + 1, market.tick_spacing))
        return bin_indices, [market.bin_quantity(b) for b in bin_indices]

    def calculate_bin_cost(self, market_id: int, bin_index: int, amount: int) -> int:
        """Quote for buying `amount` in one bin; 0 when the bin is not tradable."""
        market = self._require_market(market_id)
        if not self._is_quotable(market, bin_index):
            return 0
        return calculate_cost(amount, market.bin_quantity(bin_index), market.total_supply)

    def calculate_x_for_bin(self, market_id: int, bin_index: int, cost: int) -> int:
        """Units a `cost` budget buys in one bin; 0 when the bin is not tradable."""
        market = self._require_market(market_id)
        if not self._is_quotable(market, bin_index):
            return 0
        return calculate_x(cost, market.bin_quantity(bin_index), market.total_supply)

    def calculate_bin_sell_cost(self, market_id: int, bin_index: int, amount: int) -> int:
        """Quote for selling `amount` from one bin. Raises when the sale is impossible."""
        market = self._require_market(market_id)
        if not market.active or market.closed:
            raise MarketNotActiveError(market_id)
        validate_bin_index(market, bin_index)
        return calculate_sell_cost(amount, market.bin_quantity(bin_index), market.total_supply)

    def get_last_closed_market_id(self) -> int | None:
        return self._last_closed_market_id

    @staticmethod
    def price_to_bin_index(price: int, tick_spacing: int) -> int:
        return price_to_bin_index(price, tick_spacing)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_market(self, market_id: int) -> Market:
        market = self._markets.get(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    @staticmethod
    def _require_tradable(market: Market) -> None:
        if not market.active:
            raise MarketNotActiveError(market.id)
        if market.closed:
            raise MarketAlreadyClosedError(market.id)

    @staticmethod
    def _require_batch(bin_indices: Sequence[int], amounts: Sequence[int]) -> None:
        if len(bin_indices) != len(amounts):
            raise ArrayLengthMismatchError()
        if not bin_indices:
            raise EmptyBatchError()

    @staticmethod
    def _is_quotable(market: Market, bin_index: int) -> bool:
        return (
            market.active
            and not market.closed
            and is_aligned(bin_index, market.tick_spacing)
            and is_in_range(bin_index, market)
        )

    def _next_market_to_close(self) -> int:
        if self._last_closed_market_id is None:
            return 0
        return self._last_closed_market_id + 1

    @asynccontextmanager
    async def _atomic(self, *markets: Market) -> AsyncIterator[None]:
        snapshots = [(m, MarketSnapshot.capture(m)) for m in markets]
        try:
            yield
        except Exception:
            for market, snapshot in snapshots:
                snapshot.restore(market)
            logger.warning(
                "Rolled back markets %s after failed operation", [m.id for m, _ in snapshots]
            )
            raise

    async def _publish(self, event: EngineEvent) -> None:
        await self._events.publish(event)
