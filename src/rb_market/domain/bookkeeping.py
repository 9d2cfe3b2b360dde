"""Market bookkeeping mutations.

Callers validate first; these only apply checked arithmetic so a bad call
fails loudly instead of corrupting totals.
"""

from src.rb_common.fixed_point import checked_add, checked_sub
from src.rb_market.domain.models import Market


def add_to_bin(market: Market, bin_index: int, amount: int) -> None:
    market.bins[bin_index] = checked_add(market.bin_quantity(bin_index), amount)
    market.total_supply = checked_add(market.total_supply, amount)


def remove_from_bin(market: Market, bin_index: int, amount: int) -> None:
    remaining = checked_sub(market.bin_quantity(bin_index), amount)
    market.total_supply = checked_sub(market.total_supply, amount)
    if remaining:
        market.bins[bin_index] = remaining
    else:
        market.bins.pop(bin_index, None)


def credit_collateral(market: Market, amount: int) -> None:
    market.collateral_balance = checked_add(market.collateral_balance, amount)


def debit_collateral(market: Market, amount: int) -> None:
    market.collateral_balance = checked_sub(market.collateral_balance, amount)
