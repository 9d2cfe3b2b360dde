"""Integral bin pricing — pure functions over wad integers.

Marginal price of a bin holding q units in a market holding T units is
(q + t) / (T + t) while t more units are bought. Integrating:

  cost(x; q, T)       = x + (q - T) * ln((T + x) / T)
  sell_cost(x; q, T)  = x + (q - T) * ln(T / (T - x))

For q < T the log term is a discount, for q > T a premium, for q = T the
price is exactly par. Selling x right after buying x on the same bin hits the
same (T + x) / T ratio, so buy and sell are exact inverses.
"""

import logging

from config.settings import settings
from src.rb_common.errors import InsufficientBinLiquidityError, InvalidBinStateError
from src.rb_common.fixed_point import (
    checked_add,
    checked_sub,
    div_wad,
    ln_wad,
    mul_div,
    mul_wad,
)

logger = logging.getLogger(__name__)

# Doublings allowed when the seeded upper bound of calculate_x is too low.
_MAX_BOUND_DOUBLINGS = 256


def _apply_log_term(x: int, q: int, total: int, log_term: int) -> int:
    """x + (q - T) * log_term, clamped at 0 for the discount side."""
    if q >= total:
        return checked_add(x, mul_wad(q - total, log_term))
    discount = mul_wad(total - q, log_term)
    return x - discount if x > discount else 0


def calculate_cost(x: int, q: int, total: int) -> int:
    """Collateral needed to buy x units in a bin holding q, market total T."""
    if x == 0:
        return 0
    if total == 0 or q == total:
        return x
    ratio = div_wad(checked_add(total, x), total)
    return _apply_log_term(x, q, total, ln_wad(ratio))


def calculate_sell_cost(x: int, q: int, total: int) -> int:
    """Collateral returned for selling x units out of a bin holding q, market total T.

    Requires x <= q <= T. Selling the whole market (x == T) is only possible
    when the bin holds everything, and then returns exactly T.
    """
    if x > q:
        raise InsufficientBinLiquidityError(requested=x, available=q)
    if q > total:
        raise InvalidBinStateError(bin_quantity=q, total_supply=total)
    if x == 0:
        return 0
    if q == total:
        return x
    ratio = div_wad(total, checked_sub(total, x))
    return _apply_log_term(x, q, total, ln_wad(ratio))


def _search_upper_bound(budget: int, q: int, total: int) -> int:
    # cost(x) >= x * q / T whenever q <= T, so T * budget / q always suffices
    # for q > 0. The q == 0 seed is only a starting point and is doubled
    # until it brackets the budget.
    hi = budget if q == 0 else max(mul_div(total, budget, q), 1)
    for _ in range(_MAX_BOUND_DOUBLINGS):
        if calculate_cost(hi, q, total) >= budget:
            return hi
        hi = checked_add(hi, hi)
    return hi


def calculate_x(budget: int, q: int, total: int) -> int:
    """Units purchasable in a bin for `budget` collateral (inverse of calculate_cost).

    No closed form because of the log, so binary search with calculate_cost
    as the oracle. Returns whichever bracketing candidate prices closer to the
    budget.
    """
    if budget == 0:
        return 0
    if total == 0:
        return budget

    lo = 0
    hi = _search_upper_bound(budget, q, total)
    for _ in range(settings.INVERSE_COST_MAX_ITERATIONS):
        if hi - lo <= 1:
            break
        mid = (lo + hi) // 2
        mid_cost = calculate_cost(mid, q, total)
        if mid_cost == budget:
            return mid
        if mid_cost < budget:
            lo = mid
        else:
            hi = mid
    else:
        logger.warning(
            "calculate_x hit iteration cap: budget=%d q=%d T=%d gap=%d",
            budget, q, total, hi - lo,
        )

    lo_gap = abs(budget - calculate_cost(lo, q, total))
    hi_gap = abs(calculate_cost(hi, q, total) - budget)
    return lo if lo_gap <= hi_gap else hi
