"""Tick / bin membership rules.

A bin is identified by its lower boundary: an integer multiple of
tick_spacing inside [min_tick, max_tick].
"""

from src.rb_common.errors import (
    BinMisalignedError,
    BinOutOfRangeError,
    InvalidTickConfigError,
)
from src.rb_ledger.domain.token_id import MAX_ENCODABLE_BIN, MIN_ENCODABLE_BIN
from src.rb_market.domain.models import Market


def validate_tick_config(tick_spacing: int, min_tick: int, max_tick: int) -> None:
    if tick_spacing <= 0:
        raise InvalidTickConfigError("tick spacing must be positive")
    if min_tick % tick_spacing != 0:
        raise InvalidTickConfigError("min tick must be a multiple of tick spacing")
    if max_tick % tick_spacing != 0:
        raise InvalidTickConfigError("max tick must be a multiple of tick spacing")
    if min_tick >= max_tick:
        raise InvalidTickConfigError("min tick must be less than max tick")
    if min_tick < MIN_ENCODABLE_BIN or max_tick > MAX_ENCODABLE_BIN:
        raise InvalidTickConfigError(
            f"ticks must lie within [{MIN_ENCODABLE_BIN}, {MAX_ENCODABLE_BIN}]"
        )


def is_aligned(bin_index: int, tick_spacing: int) -> bool:
    # Python % takes the divisor's sign, so negative multiples give 0 too
    return bin_index % tick_spacing == 0


def is_in_range(bin_index: int, market: Market) -> bool:
    return market.min_tick <= bin_index <= market.max_tick


def validate_bin_index(market: Market, bin_index: int) -> None:
    if not is_aligned(bin_index, market.tick_spacing):
        raise BinMisalignedError(bin_index, market.tick_spacing)
    if not is_in_range(bin_index, market):
        raise BinOutOfRangeError(bin_index)


def price_to_bin_index(price: int, tick_spacing: int) -> int:
    """Largest multiple of tick_spacing that is <= price: -1 -> -60 for spacing 60."""
    if tick_spacing <= 0:
        raise InvalidTickConfigError("tick spacing must be positive")
    return (price // tick_spacing) * tick_spacing
