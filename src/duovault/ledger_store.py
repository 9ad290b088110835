"""Ledger store: owner of every vault and of the global ledger state.

Mutators receive the operation's ``PriceSnapshot`` and never fetch a
price themselves. Global counters use ``CheckedUint`` and are computed
before any field is assigned, so an overflow leaves the store untouched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from duovault.errors import ArithmeticOverflow, InsufficientBalance
from duovault.numeric import CheckedUint
from duovault.oracle import PriceSnapshot
from duovault.vault import Vault

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = 1

_GLOBALS = (
    "total_value_locked",
    "global_deposit_count",
    "global_withdrawal_count",
    "held_asset_a",
)


def _released_share(locked: int, amount: int, balance: int) -> int:
    """Portion of ``locked`` attributable to ``amount`` out of ``balance``."""
    if balance <= 0 or amount >= balance:
        return locked
    return locked * amount // balance


@dataclass(frozen=True)
class Checkpoint:
    """Saved state for compensating a single user's operation."""

    user: str
    vault: Vault | None
    globals: tuple[int, ...]
    reward_granted: bool
    reward_id: int | None


class LedgerStore:
    """Vault mapping plus process-wide counters."""

    def __init__(self) -> None:
        self._vaults: dict[str, Vault] = {}
        self.total_value_locked = CheckedUint(0, "total_value_locked")
        self.global_deposit_count = CheckedUint(0, "global_deposit_count")
        self.global_withdrawal_count = CheckedUint(0, "global_withdrawal_count")
        self.held_asset_a = CheckedUint(0, "held_asset_a")
        self.reward_granted: set[str] = set()
        self.reward_ids: dict[str, int] = {}

    # -- reads ----------------------------------------------------------------

    def get(self, user: str) -> Vault | None:
        return self._vaults.get(user)

    def __contains__(self, user: object) -> bool:
        return user in self._vaults

    def __len__(self) -> int:
        return len(self._vaults)

    def users(self) -> list[str]:
        return list(self._vaults)

    # -- deposits -------------------------------------------------------------

    def deposit_asset_a(self, user: str, amount: int, snapshot: PriceSnapshot) -> Vault:
        """Credit ``amount`` of asset A; TVL grows by the same amount."""
        usd = snapshot.to_usd(amount)
        tvl = self.total_value_locked + amount
        deposits = self.global_deposit_count + 1
        held = self.held_asset_a + amount

        vault = self._vaults.setdefault(user, Vault())
        vault.asset_a_balance += amount
        vault.total_usd += usd
        vault.cumulative_deposited_usd += usd
        vault.deposit_count += 1

        self.total_value_locked = tvl
        self.global_deposit_count = deposits
        self.held_asset_a = held
        return vault

    def deposit_asset_b(self, user: str, amount: int, snapshot: PriceSnapshot) -> Vault:
        """Credit ``amount`` of asset B (1:1 USD); TVL grows by its asset-A equivalent."""
        locked = snapshot.to_asset_a(amount)
        tvl = self.total_value_locked + locked
        deposits = self.global_deposit_count + 1

        vault = self._vaults.setdefault(user, Vault())
        vault.asset_b_balance += amount
        vault.asset_b_value_locked += locked
        vault.total_usd += amount
        vault.cumulative_deposited_usd += amount
        vault.deposit_count += 1

        self.total_value_locked = tvl
        self.global_deposit_count = deposits
        return vault

    # -- withdrawals ----------------------------------------------------------

    def check_balance_a(self, user: str, amount: int) -> None:
        vault = self._vaults.get(user)
        balance = int(vault.asset_a_balance) if vault else 0
        if amount > balance:
            raise InsufficientBalance(user, balance, amount)

    def check_balance_b(self, user: str, amount: int) -> None:
        vault = self._vaults.get(user)
        balance = int(vault.asset_b_balance) if vault else 0
        if amount > balance:
            raise InsufficientBalance(user, balance, amount)

    def withdraw_asset_a(self, user: str, amount: int, snapshot: PriceSnapshot) -> Vault:
        """Debit ``amount`` of asset A. Raises ``InsufficientBalance`` before mutating."""
        self.check_balance_a(user, amount)
        usd = snapshot.to_usd(amount)
        tvl = self.total_value_locked - amount
        withdrawals = self.global_withdrawal_count + 1
        held = self.held_asset_a - amount

        vault = self._vaults[user]
        vault.asset_a_balance -= amount
        vault.total_usd -= min(usd, int(vault.total_usd))
        vault.cumulative_withdrawn_usd += usd
        vault.withdrawal_count += 1

        self.total_value_locked = tvl
        self.global_withdrawal_count = withdrawals
        self.held_asset_a = held
        return vault

    def withdraw_asset_b(self, user: str, amount: int, snapshot: PriceSnapshot) -> Vault:
        """Debit ``amount`` of asset B. Raises ``InsufficientBalance`` before mutating.

        TVL drops by the withdrawn share of the asset-A value the vault's
        asset B added at deposit time; the amount is not re-priced.
        """
        self.check_balance_b(user, amount)
        vault = self._vaults[user]
        released = _released_share(
            int(vault.asset_b_value_locked), amount, int(vault.asset_b_balance)
        )
        tvl = self.total_value_locked - released
        withdrawals = self.global_withdrawal_count + 1

        vault.asset_b_balance -= amount
        vault.asset_b_value_locked -= released
        vault.total_usd -= min(amount, int(vault.total_usd))
        vault.cumulative_withdrawn_usd += amount
        vault.withdrawal_count += 1

        self.total_value_locked = tvl
        self.global_withdrawal_count = withdrawals
        return vault

    # -- rewards --------------------------------------------------------------

    def mark_reward_recipient(self, user: str) -> bool:
        """Add ``user`` to the recipient set. Returns False if already present."""
        if user in self.reward_granted:
            return False
        self.reward_granted.add(user)
        return True

    def record_reward(self, user: str, reward_id: int) -> None:
        self.reward_ids[user] = reward_id

    # -- compensation ---------------------------------------------------------

    def checkpoint(self, user: str) -> Checkpoint:
        vault = self._vaults.get(user)
        return Checkpoint(
            user=user,
            vault=vault.copy() if vault else None,
            globals=tuple(int(getattr(self, name)) for name in _GLOBALS),
            reward_granted=user in self.reward_granted,
            reward_id=self.reward_ids.get(user),
        )

    def restore(self, checkpoint: Checkpoint) -> None:
        """Reinstate the state captured by ``checkpoint``."""
        user = checkpoint.user
        if checkpoint.vault is None:
            self._vaults.pop(user, None)
        else:
            self._vaults[user] = checkpoint.vault.copy()
        for name, value in zip(_GLOBALS, checkpoint.globals):
            setattr(self, name, CheckedUint(value, name))
        if checkpoint.reward_granted:
            self.reward_granted.add(user)
        else:
            self.reward_granted.discard(user)
        if checkpoint.reward_id is None:
            self.reward_ids.pop(user, None)
        else:
            self.reward_ids[user] = checkpoint.reward_id

    # -- serialization --------------------------------------------------------

    def to_json(self) -> str:
        """Serialize to JSON string with schema version."""
        return json.dumps({
            "v": _SCHEMA_VERSION,
            **{name: int(getattr(self, name)) for name in _GLOBALS},
            "vaults": {user: v.to_dict() for user, v in self._vaults.items()},
            "reward_granted": sorted(self.reward_granted),
            "reward_ids": dict(self.reward_ids),
        }, indent=2)

    @classmethod
    def from_json(cls, data: str) -> LedgerStore:
        """Deserialize from JSON. Returns a fresh store on corrupt/missing data."""
        try:
            obj = json.loads(data)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Ledger snapshot is corrupt; returning fresh store.")
            return cls()

        if not isinstance(obj, dict):
            logger.warning("Ledger snapshot is not a dict; returning fresh store.")
            return cls()

        store = cls()
        try:
            for name in _GLOBALS:
                setattr(store, name, CheckedUint(int(obj.get(name, 0)), name))

            raw_vaults: Any = obj.get("vaults", {})
            if isinstance(raw_vaults, dict):
                for user, vault_data in raw_vaults.items():
                    if isinstance(vault_data, dict):
                        store._vaults[user] = Vault.from_dict(vault_data)

            store.reward_granted = set(obj.get("reward_granted", []))
            raw_ids = obj.get("reward_ids", {})
            if isinstance(raw_ids, dict):
                store.reward_ids = {user: int(rid) for user, rid in raw_ids.items()}
        except (TypeError, ValueError, ArithmeticOverflow) as e:
            logger.warning("Ledger snapshot has invalid fields (%s); returning fresh store.", e)
            return cls()
        return store
