"""Reentrancy and capacity guards."""

from __future__ import annotations

from types import TracebackType

from duovault.errors import BankCapExceeded, ReentrantCall, WithdrawalCapExceeded


class ReentrancyGuard:
    """Single shared lock flag, acquired as a context manager.

    Entering while locked raises ``ReentrantCall`` immediately; there is
    no waiting. Exit always releases, on success and on error alike.
    """

    def __init__(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def __enter__(self) -> ReentrancyGuard:
        if self._locked:
            raise ReentrantCall()
        self._locked = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._locked = False


def check_bank_cap(delta: int, total_value_locked: int, bank_cap: int) -> None:
    """Raise ``BankCapExceeded`` if ``delta`` does not fit under the cap."""
    available = max(int(bank_cap) - int(total_value_locked), 0)
    if delta > available:
        raise BankCapExceeded(requested=delta, available=available)


def check_withdrawal_cap(amount: int, withdrawal_cap: int) -> None:
    """Raise ``WithdrawalCapExceeded`` if ``amount`` is above the per-call cap."""
    if amount > withdrawal_cap:
        raise WithdrawalCapExceeded(requested=amount, cap=withdrawal_cap)
