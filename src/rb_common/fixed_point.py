"""Unsigned 18-decimal fixed-point arithmetic.

All quantities, costs, and balances are int in wad units (1.0 == 10**18).
No float, no Decimal. Results are bounded by uint256; anything that would
leave [0, 2**256 - 1] raises instead of wrapping.
"""

from src.rb_common.errors import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    DivisionByZeroError,
)

WAD = 10**18
MAX_UINT256 = 2**256 - 1

# ln() works at 36 digits internally and rounds once at the end
_HP = 10**36
_HP_PER_WAD = _HP // WAD
_LN2_HP = 693_147_180_559_945_309_417_232_121_458_176_568


def _require_uint(value: int, name: str) -> None:
    if value < 0:
        raise ArithmeticUnderflowError(f"{name}={value} is negative")
    if value > MAX_UINT256:
        raise ArithmeticOverflowError(f"{name} exceeds uint256")


def _bounded(result: int, op: str) -> int:
    if result > MAX_UINT256:
        raise ArithmeticOverflowError(f"{op} result exceeds uint256")
    return result


def checked_add(a: int, b: int) -> int:
    _require_uint(a, "a")
    _require_uint(b, "b")
    return _bounded(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    _require_uint(a, "a")
    _require_uint(b, "b")
    if b > a:
        raise ArithmeticUnderflowError(f"{a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    _require_uint(a, "a")
    _require_uint(b, "b")
    return _bounded(a * b, "mul")


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with an unbounded intermediate product."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    _require_uint(denominator, "denominator")
    if denominator == 0:
        raise DivisionByZeroError("mul_div denominator is zero")
    return _bounded((a * b) // denominator, "mul_div")


def mul_wad(a: int, b: int) -> int:
    """a * b for two wad values, rounded half up."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    return _bounded((a * b + WAD // 2) // WAD, "mul_wad")


def div_wad(a: int, b: int) -> int:
    """a / b for two wad values, rounded half up."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    if b == 0:
        raise DivisionByZeroError("div_wad divisor is zero")
    return _bounded((a * WAD + b // 2) // b, "div_wad")


def ln_wad(x: int) -> int:
    """Natural logarithm of a wad value >= 1.0, correctly rounded to 18 digits.

    x = 2^n * y with y in [1, 2); ln(y) comes from the atanh series
    ln(y) = 2 * sum(z^(2k+1) / (2k+1)), z = (y - 1) / (y + 1) <= 1/3.
    Values below 1.0 have a negative log, which the unsigned type cannot hold.
    """
    _require_uint(x, "x")
    if x < WAD:
        raise ArithmeticUnderflowError(f"ln of {x} is negative")
    if x == WAD:
        return 0

    n = (x // WAD).bit_length() - 1
    y = (x * _HP_PER_WAD) >> n

    z = ((y - _HP) * _HP) // (y + _HP)
    z_sq = (z * z) // _HP
    series = 0
    term = z
    k = 1
    while term:
        series += term // k
        term = (term * z_sq) // _HP
        k += 2

    ln_hp = n * _LN2_HP + 2 * series
    return (ln_hp + _HP_PER_WAD // 2) // _HP_PER_WAD


def to_wad(units: int) -> int:
    """Whole token units -> wad: 100 -> 100 * 10**18."""
    return checked_mul(units, WAD)


def parse_wad(text: str) -> int:
    """Decimal string -> wad: '1.5' -> 1_500_000_000_000_000_000."""
    whole, _, frac = text.strip().partition(".")
    if not whole.isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"Not an unsigned decimal: {text!r}")
    if len(frac) > 18:
        raise ValueError(f"More than 18 fractional digits: {text!r}")
    return checked_add(to_wad(int(whole)), int(frac.ljust(18, "0")) if frac else 0)


def wad_to_display(value: int) -> str:
    """Wad -> display string: 1_500_000_000_000_000_000 -> '1.5'."""
    _require_uint(value, "value")
    whole, frac = divmod(value, WAD)
    frac_str = f"{frac:018d}".rstrip("0") or "0"
    return f"{whole:,}.{frac_str}"
