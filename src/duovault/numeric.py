"""Unsigned 256-bit integer types with an explicit overflow policy.

``WrappingUint`` — per-vault fields. Values are bounded in practice by the
bank cap, which is enforced with checked arithmetic before any vault
mutation, so wrap-on-overflow is acceptable.

``CheckedUint`` — global counters. Must fail loudly: any result outside
``[0, UINT256_MAX]`` raises ``ArithmeticOverflow``.

Both are ``int`` subclasses so they compare, format and serialize like
plain integers. Only ``+`` and ``-`` carry the policy; every other
operator returns a plain ``int``.
"""

from __future__ import annotations

from duovault.constants import UINT256_MAX
from duovault.errors import ArithmeticOverflow

_MODULUS = UINT256_MAX + 1


class WrappingUint(int):
    """uint256 that wraps modulo 2**256 on overflow and underflow."""

    def __new__(cls, value: int = 0) -> WrappingUint:
        return super().__new__(cls, int(value) % _MODULUS)

    def __add__(self, other: int) -> WrappingUint:
        return WrappingUint(int(self) + int(other))

    __radd__ = __add__

    def __sub__(self, other: int) -> WrappingUint:
        return WrappingUint(int(self) - int(other))

    def __rsub__(self, other: int) -> WrappingUint:
        return WrappingUint(int(other) - int(self))

    def __repr__(self) -> str:
        return f"WrappingUint({int(self)})"


class CheckedUint(int):
    """uint256 that raises ``ArithmeticOverflow`` when leaving its range.

    ``label`` names the counter in the raised error.
    """

    label: str

    def __new__(cls, value: int = 0, label: str = "uint256") -> CheckedUint:
        value = int(value)
        if value < 0 or value > UINT256_MAX:
            raise ArithmeticOverflow(label, value)
        obj = super().__new__(cls, value)
        obj.label = label
        return obj

    def __add__(self, other: int) -> CheckedUint:
        return CheckedUint(int(self) + int(other), self.label)

    __radd__ = __add__

    def __sub__(self, other: int) -> CheckedUint:
        return CheckedUint(int(self) - int(other), self.label)

    def __rsub__(self, other: int) -> CheckedUint:
        return CheckedUint(int(other) - int(self), self.label)

    def __repr__(self) -> str:
        return f"CheckedUint({int(self)}, label={self.label!r})"
