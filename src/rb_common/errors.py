"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Access
  2xxx: Collateral
  3xxx: Market lifecycle
  4xxx: Trading / bins
  5xxx: Position
  6xxx: Fixed-point arithmetic
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Access ---

class ForbiddenError(AppError):
    def __init__(self, detail: str = "Operator account required") -> None:
        super().__init__(1001, detail, 403)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid or expired token", 401)


# --- 2xxx: Collateral ---

class InsufficientCollateralError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient collateral: required {required}, available {available}",
            422,
        )


class FaucetLimitExceededError(AppError):
    def __init__(self, amount: int, limit: int) -> None:
        super().__init__(2002, f"Faucet amount {amount} exceeds limit {limit}", 422)


# --- 3xxx: Market lifecycle ---

class InvalidTickConfigError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid tick config: {detail}", 422)


class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"Market not found: {market_id}", 404)


class MarketNotActiveError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3003, f"Market is not active: {market_id}", 422)


class MarketAlreadyClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market is already closed: {market_id}", 422)


class MarketNotClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3005, f"Market is not closed: {market_id}", 422)


class NoMoreMarketsToCloseError(AppError):
    def __init__(self) -> None:
        super().__init__(3006, "No more markets to close", 422)


class PriceOutsideMarketRangeError(AppError):
    def __init__(self, price: int, bin_index: int) -> None:
        super().__init__(
            3007, f"Price {price} maps to bin {bin_index} outside market range", 422
        )


# --- 4xxx: Trading / bins ---

class ArrayLengthMismatchError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Array lengths must match", 422)


class EmptyBatchError(AppError):
    def __init__(self) -> None:
        super().__init__(4002, "Must trade at least one bin", 422)


class BinOutOfRangeError(AppError):
    def __init__(self, bin_index: int) -> None:
        super().__init__(4003, f"Bin index out of range: {bin_index}", 422)


class BinMisalignedError(AppError):
    def __init__(self, bin_index: int, tick_spacing: int) -> None:
        super().__init__(
            4004,
            f"Bin index {bin_index} must be a multiple of tick spacing {tick_spacing}",
            422,
        )


class InvalidBinRangeError(AppError):
    def __init__(self, from_bin: int, to_bin: int) -> None:
        super().__init__(4005, f"from_bin {from_bin} must be <= to_bin {to_bin}", 422)


class CostExceedsBudgetError(AppError):
    def __init__(self, cost: int, max_collateral: int) -> None:
        super().__init__(4006, f"Cost {cost} exceeds max collateral {max_collateral}", 422)


class RevenueBelowMinimumError(AppError):
    def __init__(self, revenue: int, min_revenue: int) -> None:
        super().__init__(
            4007, f"Revenue {revenue} below minimum expected {min_revenue}", 422
        )


class InsufficientBinLiquidityError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            4008,
            f"Cannot sell more tokens than available in bin: "
            f"requested {requested}, available {available}",
            422,
        )


class InvalidBinStateError(AppError):
    def __init__(self, bin_quantity: int, total_supply: int) -> None:
        super().__init__(
            4009,
            f"Bin quantity {bin_quantity} cannot exceed total supply {total_supply}",
            422,
        )


class BinRangeTooWideError(AppError):
    def __init__(self, bin_count: int, limit: int) -> None:
        super().__init__(4010, f"Range spans {bin_count} bins, limit is {limit}", 422)


# --- 5xxx: Position ---

class InsufficientPositionBalanceError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            5001,
            f"Insufficient token balance: requested {requested}, available {available}",
            422,
        )


class NoTokensToClaimError(AppError):
    def __init__(self) -> None:
        super().__init__(5002, "No tokens to claim", 422)


# --- 6xxx: Fixed-point arithmetic ---

class ArithmeticUnderflowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Arithmetic underflow: {detail}", 422)


class ArithmeticOverflowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6002, f"Arithmetic overflow: {detail}", 422)


class DivisionByZeroError(AppError):
    def __init__(self, detail: str = "division by zero") -> None:
        super().__init__(6003, f"Arithmetic error: {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
