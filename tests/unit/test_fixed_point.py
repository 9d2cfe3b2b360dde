"""Tests for rb_common.fixed_point."""

import pytest

from src.rb_common.errors import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    DivisionByZeroError,
)
from src.rb_common.fixed_point import (
    MAX_UINT256,
    WAD,
    checked_add,
    checked_mul,
    checked_sub,
    div_wad,
    ln_wad,
    mul_div,
    mul_wad,
    parse_wad,
    to_wad,
    wad_to_display,
)


class TestCheckedArithmetic:
    def test_add(self) -> None:
        assert checked_add(2, 3) == 5

    def test_add_overflow(self) -> None:
        with pytest.raises(ArithmeticOverflowError):
            checked_add(MAX_UINT256, 1)

    def test_sub(self) -> None:
        assert checked_sub(5, 3) == 2

    def test_sub_underflow(self) -> None:
        with pytest.raises(ArithmeticUnderflowError):
            checked_sub(1, 2)

    def test_negative_operand_rejected(self) -> None:
        with pytest.raises(ArithmeticUnderflowError):
            checked_add(-1, 5)

    def test_mul_overflow(self) -> None:
        with pytest.raises(ArithmeticOverflowError):
            checked_mul(2**200, 2**100)


class TestMulDiv:
    def test_floors(self) -> None:
        assert mul_div(7, 3, 2) == 10  # 21 / 2 = 10.5

    def test_large_intermediate(self) -> None:
        # a * b exceeds uint256 but the quotient does not
        assert mul_div(2**200, 2**100, 2**100) == 2**200

    def test_zero_denominator(self) -> None:
        with pytest.raises(DivisionByZeroError):
            mul_div(1, 1, 0)


class TestWadOps:
    def test_mul_wad(self) -> None:
        assert mul_wad(3 * WAD, WAD // 2) == 3 * WAD // 2

    def test_mul_wad_rounds_half_up(self) -> None:
        # 1 wei * 0.5 = 0.5 wei -> 1
        assert mul_wad(1, WAD // 2) == 1

    def test_div_wad(self) -> None:
        assert div_wad(3 * WAD, 2 * WAD) == 3 * WAD // 2

    def test_div_wad_rounds_half_up(self) -> None:
        assert div_wad(WAD, 3 * WAD) == 333_333_333_333_333_333
        assert div_wad(2 * WAD, 3 * WAD) == 666_666_666_666_666_667

    def test_div_wad_by_zero(self) -> None:
        with pytest.raises(DivisionByZeroError):
            div_wad(WAD, 0)


class TestLnWad:
    def test_ln_one_is_zero(self) -> None:
        assert ln_wad(WAD) == 0

    def test_ln_two(self) -> None:
        assert ln_wad(2 * WAD) == 693_147_180_559_945_309

    def test_ln_ten(self) -> None:
        assert abs(ln_wad(10 * WAD) - 2_302_585_092_994_045_684) <= 1

    def test_ln_e(self) -> None:
        assert abs(ln_wad(2_718_281_828_459_045_235) - WAD) <= 1

    def test_ln_one_and_a_half(self) -> None:
        # ln(1.5) = 0.405465108108164381978...
        assert abs(ln_wad(3 * WAD // 2) - 405_465_108_108_164_382) <= 1

    def test_monotonic(self) -> None:
        values = [ln_wad(WAD + step * 10**15) for step in range(1, 50)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_below_one_underflows(self) -> None:
        with pytest.raises(ArithmeticUnderflowError):
            ln_wad(WAD - 1)


class TestConversions:
    def test_to_wad(self) -> None:
        assert to_wad(100) == 100 * WAD

    def test_parse_wad(self) -> None:
        assert parse_wad("1.5") == 1_500_000_000_000_000_000
        assert parse_wad("42") == 42 * WAD
        assert parse_wad("0.000000000000000001") == 1

    def test_parse_wad_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_wad("abc")
        with pytest.raises(ValueError):
            parse_wad("-1")

    def test_parse_wad_rejects_excess_precision(self) -> None:
        with pytest.raises(ValueError, match="fractional"):
            parse_wad("0.0000000000000000001")

    def test_display(self) -> None:
        assert wad_to_display(1_500_000_000_000_000_000) == "1.5"
        assert wad_to_display(1_234 * WAD) == "1,234.0"
        assert wad_to_display(0) == "0.0"
        assert wad_to_display(1) == "0.000000000000000001"
