"""Collaborator Protocols — dependency inversion for testability.

The engine only talks to the position ledger and the collateral vault
through these. Implementations must not call back into the engine.
"""

from typing import Protocol


class PositionLedgerProtocol(Protocol):
    """Fungible per-bin position balances keyed by encoded token id."""

    async def balance_of(self, account: str, token_id: int) -> int: ...

    async def mint_batch(
        self, account: str, token_ids: list[int], amounts: list[int]
    ) -> None: ...

    async def burn_batch(
        self, account: str, token_ids: list[int], amounts: list[int]
    ) -> None: ...


class CollateralVaultProtocol(Protocol):
    """Collateral transfers between accounts and engine custody."""

    async def balance_of(self, account: str) -> int: ...

    async def pull(self, account: str, amount: int) -> None: ...

    async def push(self, account: str, amount: int) -> None: ...
