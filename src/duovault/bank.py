"""Deposit/withdraw orchestration for the dual-asset ledger.

Every balance-mutating entry point runs the same phases in order:

1. acquire the reentrancy guard
2. reject a zero amount
3. fetch one price snapshot
4. capacity checks (bank cap / withdrawal cap, then vault balance)
5. mutate the ledger store
6. emit the notification
7. deposits run the reward trigger, withdrawals send the payout
8. commit notifications, release the guard

Asset-B deposits pull funds between 4 and 5. Each operation holds a
store checkpoint; any failure restores it and drops the operation's
notifications, so a failed payout or mint leaves no trace.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from duovault.authorization import Authorizer
from duovault.collaborators import AssetBToken, NativePayout, RewardIssuer
from duovault.config import BankConfig
from duovault.constants import ADMIN_ROLE
from duovault.errors import (
    InvalidPrice,
    TransferFailed,
    Unauthorized,
    ZeroDeposit,
    ZeroWithdrawal,
)
from duovault.events import (
    Deposit,
    DepositAssetB,
    EventBus,
    Journal,
    Withdrawal,
    WithdrawalAssetB,
)
from duovault.guards import ReentrancyGuard, check_bank_cap, check_withdrawal_cap
from duovault.ledger_store import LedgerStore
from duovault.oracle import PriceFeed, PriceOracle, PriceSnapshot
from duovault.rewards import RewardTrigger
from duovault.vault import Vault

logger = logging.getLogger(__name__)


def _require_amount(amount: int, zero_error: type[Exception]) -> None:
    if amount == 0:
        raise zero_error()
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")


class Bank:
    """Dual-asset vault ledger with capped deposits and a one-time reward.

    Entry points are coroutines; a second entry while one is awaiting an
    external service is rejected with ``ReentrantCall``.
    """

    def __init__(
        self,
        config: BankConfig,
        oracle: PriceOracle,
        asset_b: AssetBToken,
        payout: NativePayout,
        issuer: RewardIssuer,
        authorizer: Authorizer,
        store: LedgerStore | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._config = config
        self._oracle = oracle
        self._asset_b = asset_b
        self._payout = payout
        self._authorizer = authorizer
        self._store = store if store is not None else LedgerStore()
        self.events = events if events is not None else EventBus()
        self._guard = ReentrancyGuard()
        self._rewards = RewardTrigger(issuer, config.reward_threshold, config.reward_metadata)

    # -- plumbing -------------------------------------------------------------

    @contextmanager
    def _operation(self, user: str) -> Iterator[Journal]:
        """Guarded, all-or-nothing scope for one user operation."""
        with self._guard:
            checkpoint = self._store.checkpoint(user)
            journal = self.events.journal()
            try:
                yield journal
            except BaseException:
                self._store.restore(checkpoint)
                journal.discard()
                raise
            journal.commit()

    async def _snapshot(self) -> PriceSnapshot:
        snapshot = await self._oracle.get_price()
        if snapshot.value <= 0:
            raise InvalidPrice(snapshot.value)
        return snapshot

    def _require_role(self, caller: str, role: str) -> None:
        if not self._authorizer.has_role(role, caller):
            raise Unauthorized(caller, role)

    async def _pull_asset_b(self, caller: str, amount: int) -> None:
        try:
            ok = await self._asset_b.transfer_from(caller, self._config.bank_address, amount)
        except Exception as exc:
            raise TransferFailed(str(exc)) from exc
        if not ok:
            raise TransferFailed(b"")

    async def _refund_asset_b(self, caller: str, amount: int) -> None:
        """Return pulled asset B after a failed deposit. Never raises."""
        try:
            ok = await self._asset_b.transfer(caller, amount)
        except Exception:
            logger.exception("CRITICAL: refund of %d asset B to %s raised.", amount, caller)
            return
        if ok:
            logger.warning("Refunded %d asset B to %s after failed deposit.", amount, caller)
        else:
            logger.error("CRITICAL: refund of %d asset B to %s was rejected.", amount, caller)

    async def _send_asset_a(self, to: str, amount: int) -> None:
        try:
            ok, data = await self._payout.send(to, amount)
        except Exception as exc:
            raise TransferFailed(str(exc)) from exc
        if not ok:
            logger.warning("Asset A payout of %d to %s failed; rolling back.", amount, to)
            raise TransferFailed(data)

    async def _send_asset_b(self, to: str, amount: int) -> None:
        try:
            ok = await self._asset_b.transfer(to, amount)
        except Exception as exc:
            raise TransferFailed(str(exc)) from exc
        if not ok:
            logger.warning("Asset B payout of %d to %s failed; rolling back.", amount, to)
            raise TransferFailed(b"")

    # -- deposits -------------------------------------------------------------

    async def deposit_asset_a(self, caller: str, amount: int) -> None:
        """Record ``amount`` of native asset A received from ``caller``."""
        with self._operation(caller) as journal:
            _require_amount(amount, ZeroDeposit)
            snapshot = await self._snapshot()
            check_bank_cap(amount, self._store.total_value_locked, self._config.bank_cap)

            vault = self._store.deposit_asset_a(caller, amount, snapshot)
            journal.emit(Deposit(user=caller, amount=amount))
            await self._rewards.evaluate(self._store, caller, vault, snapshot, journal)

        logger.info(
            "Deposit: %s +%d asset A at price %d (tvl %d).",
            caller, amount, snapshot.value, int(self._store.total_value_locked),
        )

    async def deposit_asset_b(self, caller: str, amount: int) -> None:
        """Pull ``amount`` of asset B from ``caller`` and credit it.

        The caller must have approved the transfer beforehand. If the pull
        fails nothing changes; if a later step fails the pulled funds are
        refunded.
        """
        with self._operation(caller) as journal:
            _require_amount(amount, ZeroDeposit)
            snapshot = await self._snapshot()
            check_bank_cap(
                snapshot.to_asset_a(amount),
                self._store.total_value_locked,
                self._config.bank_cap,
            )

            await self._pull_asset_b(caller, amount)
            try:
                vault = self._store.deposit_asset_b(caller, amount, snapshot)
                journal.emit(DepositAssetB(user=caller, amount=amount))
                await self._rewards.evaluate(self._store, caller, vault, snapshot, journal)
            except BaseException:
                await self._refund_asset_b(caller, amount)
                raise

        logger.info(
            "Deposit: %s +%d asset B at price %d (tvl %d).",
            caller, amount, snapshot.value, int(self._store.total_value_locked),
        )

    # -- withdrawals ----------------------------------------------------------

    async def withdraw_asset_a(self, caller: str, amount: int) -> None:
        """Debit ``amount`` of asset A and pay it out to ``caller``."""
        with self._operation(caller) as journal:
            _require_amount(amount, ZeroWithdrawal)
            snapshot = await self._snapshot()
            check_withdrawal_cap(amount, self._config.withdrawal_cap)
            self._store.check_balance_a(caller, amount)

            self._store.withdraw_asset_a(caller, amount, snapshot)
            journal.emit(Withdrawal(user=caller, amount=amount))
            await self._send_asset_a(caller, amount)

        logger.info("Withdrawal: %s -%d asset A at price %d.", caller, amount, snapshot.value)

    async def withdraw_asset_b(self, caller: str, amount: int) -> None:
        """Debit ``amount`` of asset B and transfer it to ``caller``."""
        with self._operation(caller) as journal:
            _require_amount(amount, ZeroWithdrawal)
            snapshot = await self._snapshot()
            check_withdrawal_cap(amount, self._config.effective_asset_b_withdrawal_cap)
            self._store.check_balance_b(caller, amount)

            self._store.withdraw_asset_b(caller, amount, snapshot)
            journal.emit(WithdrawalAssetB(user=caller, amount=amount))
            await self._send_asset_b(caller, amount)

        logger.info("Withdrawal: %s -%d asset B at price %d.", caller, amount, snapshot.value)

    # -- reads ----------------------------------------------------------------

    def get_account_counts(self, caller: str) -> tuple[int, int]:
        """Return ``(deposit_count, withdrawal_count)`` for ``caller``."""
        vault = self._store.get(caller)
        if vault is None:
            return 0, 0
        return int(vault.deposit_count), int(vault.withdrawal_count)

    def get_contract_balance(self) -> int:
        """Native asset A currently held."""
        return int(self._store.held_asset_a)

    async def get_latest_price(self) -> int:
        """Fresh oracle answer. Not tied to any operation's snapshot."""
        snapshot = await self._oracle.get_price()
        return snapshot.value

    def get_vault(self, user: str) -> Vault | None:
        """Copy of ``user``'s vault, or None if they never deposited."""
        vault = self._store.get(user)
        return vault.copy() if vault else None

    @property
    def total_value_locked(self) -> int:
        """Asset-A value currently counted against the bank cap."""
        return int(self._store.total_value_locked)

    @property
    def config(self) -> BankConfig:
        """The bank's immutable configuration."""
        return self._config

    def has_reward(self, user: str) -> bool:
        """Whether ``user`` has been granted the one-time reward."""
        return user in self._store.reward_granted

    def reward_id(self, user: str) -> int | None:
        """Id of ``user``'s minted reward, or None."""
        return self._store.reward_ids.get(user)

    def to_json(self) -> str:
        """Snapshot of the ledger store, loadable with ``LedgerStore.from_json``."""
        return self._store.to_json()

    # -- administration -------------------------------------------------------

    def set_price_feed(self, caller: str, feed: PriceFeed) -> None:
        """Point the oracle at a new feed. Requires ``ADMIN_ROLE``."""
        with self._guard:
            self._require_role(caller, ADMIN_ROLE)
            self._oracle.feed = feed

    def set_reward_metadata(self, caller: str, metadata_ref: str) -> None:
        """Change the metadata reference passed to future mints. Requires ``ADMIN_ROLE``."""
        with self._guard:
            self._require_role(caller, ADMIN_ROLE)
            if not metadata_ref:
                raise ValueError("metadata_ref must be non-empty")
            self._rewards.metadata_ref = metadata_ref
            logger.info("%s set reward metadata to %s.", caller, metadata_ref)
