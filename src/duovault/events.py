"""Ledger notifications and the bus that delivers them.

Events raised during an operation are buffered in a ``Journal`` and only
reach subscribers once the operation commits. A failed operation discards
its journal, so observers never see effects that were rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deposit:
    user: str
    amount: int


@dataclass(frozen=True)
class DepositAssetB:
    user: str
    amount: int


@dataclass(frozen=True)
class Withdrawal:
    user: str
    amount: int


@dataclass(frozen=True)
class WithdrawalAssetB:
    user: str
    amount: int


@dataclass(frozen=True)
class RewardGranted:
    user: str
    reward_id: int


Event = Union[Deposit, DepositAssetB, Withdrawal, WithdrawalAssetB, RewardGranted]
Subscriber = Callable[[Event], None]


class Journal:
    """Pending events for one in-flight operation."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._pending: list[Event] = []

    @property
    def pending(self) -> list[Event]:
        return list(self._pending)

    def emit(self, event: Event) -> None:
        self._pending.append(event)

    def commit(self) -> None:
        pending, self._pending = self._pending, []
        for event in pending:
            self._bus.publish(event)

    def discard(self) -> None:
        if self._pending:
            logger.debug("Discarding %d uncommitted event(s).", len(self._pending))
        self._pending = []


class EventBus:
    """Committed event history plus synchronous subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self.history: list[Event] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def journal(self) -> Journal:
        return Journal(self)

    def publish(self, event: Event) -> None:
        self.history.append(event)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # The operation has already committed; a broken observer must not undo it.
                logger.exception("Event subscriber %r failed on %r.", callback, event)
