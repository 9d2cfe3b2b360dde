"""Position token id codec.

token_id = (market_id << 128) | (bin_index + BIN_OFFSET)

BIN_OFFSET biases negative bin indices into the unsigned range. The layout
is shared with external indexers and must stay bit-exact.
"""

BIN_OFFSET = 10**9
_MARKET_SHIFT = 128
_BIN_MASK = (1 << _MARKET_SHIFT) - 1

# Bin indices the layout can carry
MIN_ENCODABLE_BIN = -BIN_OFFSET
MAX_ENCODABLE_BIN = _BIN_MASK - BIN_OFFSET


def encode_token_id(market_id: int, bin_index: int) -> int:
    if market_id < 0:
        raise ValueError(f"market_id must be non-negative, got {market_id}")
    biased = bin_index + BIN_OFFSET
    if not 0 <= biased <= _BIN_MASK:
        raise ValueError(f"bin_index {bin_index} not encodable")
    return (market_id << _MARKET_SHIFT) | biased


def decode_token_id(token_id: int) -> tuple[int, int]:
    """Reverse of encode_token_id -> (market_id, bin_index)."""
    if token_id < 0:
        raise ValueError(f"token_id must be non-negative, got {token_id}")
    return token_id >> _MARKET_SHIFT, (token_id & _BIN_MASK) - BIN_OFFSET
