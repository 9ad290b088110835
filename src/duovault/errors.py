"""Ledger exception hierarchy.

Every error carries structured fields so callers (and the tool surface)
can report the reason without parsing messages.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger operations."""


class ZeroAmount(LedgerError):
    """Deposit or withdrawal of zero."""

    def __init__(self, message: str = "amount must be non-zero") -> None:
        super().__init__(message)


class ZeroDeposit(ZeroAmount):
    def __init__(self) -> None:
        super().__init__("deposit amount must be non-zero")


class ZeroWithdrawal(ZeroAmount):
    def __init__(self) -> None:
        super().__init__("withdrawal amount must be non-zero")


class BankCapExceeded(LedgerError):
    """Deposit would push total value locked past the bank cap."""

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            f"bank cap exceeded: requested {requested:,}, available {available:,}"
        )
        self.requested = requested
        self.available = available


class WithdrawalCapExceeded(LedgerError):
    """Withdrawal larger than the per-operation cap."""

    def __init__(self, requested: int, cap: int) -> None:
        super().__init__(
            f"withdrawal exceeds cap: requested {requested:,}, cap {cap:,}"
        )
        self.requested = requested
        self.cap = cap


class InsufficientBalance(LedgerError):
    """Withdrawal larger than the stored vault balance."""

    def __init__(self, account: str, balance: int, requested: int) -> None:
        super().__init__(
            f"insufficient balance for {account}: balance {balance:,}, requested {requested:,}"
        )
        self.account = account
        self.balance = balance
        self.requested = requested


class ReentrantCall(LedgerError):
    """An entry point was invoked while another one is in flight."""

    def __init__(self) -> None:
        super().__init__("reentrant call rejected")


class TransferFailed(LedgerError):
    """External asset transfer reported failure."""

    def __init__(self, reason: bytes | str = b"") -> None:
        super().__init__(f"external transfer failed: {reason!r}")
        self.reason = reason


class InvalidPrice(LedgerError):
    """Oracle returned a non-positive price."""

    def __init__(self, price: int) -> None:
        super().__init__(f"oracle price must be positive, got {price}")
        self.price = price


class RewardIssuanceFailed(LedgerError):
    """The reward issuance service failed to mint."""

    def __init__(self, account: str) -> None:
        super().__init__(f"reward issuance failed for {account}")
        self.account = account


class Unauthorized(LedgerError):
    """Caller lacks the role required for an administrative operation."""

    def __init__(self, account: str, role: str) -> None:
        super().__init__(f"{account} is missing role {role}")
        self.account = account
        self.role = role


class ArithmeticOverflow(LedgerError, OverflowError):
    """A checked counter overflowed or underflowed."""

    def __init__(self, field: str, value: int) -> None:
        super().__init__(f"{field} out of uint256 range: {value}")
        self.field = field
        self.value = value
