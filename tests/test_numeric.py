"""Tests for the overflow-policy integer types."""

import pytest

from duovault.constants import UINT256_MAX
from duovault.errors import ArithmeticOverflow
from duovault.numeric import CheckedUint, WrappingUint


# ---------------------------------------------------------------------------
# WrappingUint
# ---------------------------------------------------------------------------


class TestWrappingUint:
    def test_default_zero(self) -> None:
        assert WrappingUint() == 0

    def test_behaves_like_int(self) -> None:
        v = WrappingUint(5)
        assert v == 5
        assert v * 2 == 10
        assert f"{v:,}" == "5"

    def test_add_returns_wrapping(self) -> None:
        v = WrappingUint(5) + 3
        assert isinstance(v, WrappingUint)
        assert v == 8

    def test_radd(self) -> None:
        v = 3 + WrappingUint(5)
        assert isinstance(v, WrappingUint)
        assert v == 8

    def test_wraps_on_overflow(self) -> None:
        assert WrappingUint(UINT256_MAX) + 2 == 1

    def test_wraps_on_underflow(self) -> None:
        assert WrappingUint(0) - 1 == UINT256_MAX

    def test_augmented_assignment_keeps_type(self) -> None:
        v = WrappingUint(1)
        v += 1
        assert isinstance(v, WrappingUint)
        v -= 5
        assert v == UINT256_MAX - 2


# ---------------------------------------------------------------------------
# CheckedUint
# ---------------------------------------------------------------------------


class TestCheckedUint:
    def test_add_returns_checked(self) -> None:
        v = CheckedUint(5, "tvl") + 3
        assert isinstance(v, CheckedUint)
        assert v == 8
        assert v.label == "tvl"

    def test_overflow_raises(self) -> None:
        with pytest.raises(ArithmeticOverflow) as exc_info:
            CheckedUint(UINT256_MAX, "global_deposit_count") + 1
        assert exc_info.value.field == "global_deposit_count"
        assert exc_info.value.value == UINT256_MAX + 1

    def test_underflow_raises(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            CheckedUint(1, "tvl") - 2

    def test_rsub_checked(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            1 - CheckedUint(2)

    def test_negative_construction_rejected(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            CheckedUint(-1)

    def test_overflow_is_overflow_error(self) -> None:
        with pytest.raises(OverflowError):
            CheckedUint(UINT256_MAX) + 1

    def test_max_value_allowed(self) -> None:
        assert CheckedUint(UINT256_MAX - 1) + 1 == UINT256_MAX
