"""In-memory position ledger and collateral vault.

Process-local stand-ins for the external token contracts; the service wires
them by default and unit tests use them directly.
"""

import logging
from collections import defaultdict

from src.rb_common.errors import (
    InsufficientCollateralError,
    InsufficientPositionBalanceError,
)
from src.rb_common.fixed_point import checked_add, checked_sub

logger = logging.getLogger(__name__)


class InMemoryPositionLedger:
    def __init__(self) -> None:
        # _balances[account][token_id] = amount
        self._balances: dict[str, dict[int, int]] = defaultdict(dict)

    async def balance_of(self, account: str, token_id: int) -> int:
        return self._balances[account].get(token_id, 0)

    async def mint_batch(
        self, account: str, token_ids: list[int], amounts: list[int]
    ) -> None:
        held = self._balances[account]
        for token_id, amount in zip(token_ids, amounts, strict=True):
            held[token_id] = checked_add(held.get(token_id, 0), amount)

    async def burn_batch(
        self, account: str, token_ids: list[int], amounts: list[int]
    ) -> None:
        held = self._balances[account]
        # Validate the whole batch before touching balances
        needed: dict[int, int] = defaultdict(int)
        for token_id, amount in zip(token_ids, amounts, strict=True):
            needed[token_id] += amount
        for token_id, amount in needed.items():
            available = held.get(token_id, 0)
            if amount > available:
                raise InsufficientPositionBalanceError(requested=amount, available=available)
        for token_id, amount in needed.items():
            remaining = checked_sub(held.get(token_id, 0), amount)
            if remaining:
                held[token_id] = remaining
            else:
                held.pop(token_id, None)


class InMemoryCollateralVault:
    def __init__(self) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._custody = 0

    @property
    def custody_balance(self) -> int:
        """Collateral currently held by the engine across all markets."""
        return self._custody

    async def balance_of(self, account: str) -> int:
        return self._balances[account]

    async def mint(self, account: str, amount: int) -> None:
        """Faucet: create collateral out of thin air (mock token only)."""
        self._balances[account] = checked_add(self._balances[account], amount)
        logger.info("Collateral minted: account=%s amount=%d", account, amount)

    async def pull(self, account: str, amount: int) -> None:
        available = self._balances[account]
        if amount > available:
            raise InsufficientCollateralError(required=amount, available=available)
        self._balances[account] = checked_sub(available, amount)
        self._custody = checked_add(self._custody, amount)

    async def push(self, account: str, amount: int) -> None:
        self._custody = checked_sub(self._custody, amount)
        self._balances[account] = checked_add(self._balances[account], amount)
