"""Tests for LedgerStore mutators, compensation and serialization."""

import json

import pytest

from duovault.constants import UINT256_MAX
from duovault.errors import ArithmeticOverflow, InsufficientBalance
from duovault.ledger_store import LedgerStore
from duovault.numeric import CheckedUint
from duovault.oracle import PriceSnapshot

ETH = 10**18
USD = 10**6

# 2000 USD per unit of asset A, 8 decimals
PRICE = PriceSnapshot(value=2000 * 10**8)


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


class TestDeposits:
    def test_deposit_a_creates_vault_lazily(self) -> None:
        store = LedgerStore()
        assert store.get("alice") is None
        store.deposit_asset_a("alice", ETH, PRICE)
        vault = store.get("alice")
        assert vault is not None
        assert vault.asset_a_balance == ETH
        assert vault.total_usd == 2000 * USD
        assert vault.cumulative_deposited_usd == 2000 * USD
        assert vault.deposit_count == 1

    def test_deposit_a_updates_globals(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", ETH, PRICE)
        store.deposit_asset_a("bob", 2 * ETH, PRICE)
        assert store.total_value_locked == 3 * ETH
        assert store.held_asset_a == 3 * ETH
        assert store.global_deposit_count == 2
        assert isinstance(store.total_value_locked, CheckedUint)

    def test_deposit_b_values_one_to_one(self) -> None:
        store = LedgerStore()
        store.deposit_asset_b("alice", 1000 * USD, PRICE)
        vault = store.get("alice")
        assert vault.asset_b_balance == 1000 * USD
        assert vault.total_usd == 1000 * USD
        # 1000 USD at 2000 USD/unit == 0.5 unit of asset A
        assert store.total_value_locked == ETH // 2
        assert store.held_asset_a == 0

    def test_valuation_uses_price_at_each_operation(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", ETH, PRICE)
        store.deposit_asset_a("alice", ETH, PriceSnapshot(value=3000 * 10**8))
        # Not re-priced: 2000 + 3000, not 2 * 3000
        assert store.get("alice").total_usd == 5000 * USD

    def test_global_overflow_leaves_state_untouched(self) -> None:
        store = LedgerStore()
        store.global_deposit_count = CheckedUint(UINT256_MAX, "global_deposit_count")
        with pytest.raises(ArithmeticOverflow):
            store.deposit_asset_a("alice", 5, PRICE)
        assert store.get("alice") is None
        assert store.total_value_locked == 0


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


class TestWithdrawals:
    def test_withdraw_a_symmetric(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", 2 * ETH, PRICE)
        store.withdraw_asset_a("alice", ETH, PRICE)
        vault = store.get("alice")
        assert vault.asset_a_balance == ETH
        assert vault.total_usd == 2000 * USD
        assert vault.cumulative_withdrawn_usd == 2000 * USD
        assert vault.withdrawal_count == 1
        assert store.total_value_locked == ETH
        assert store.held_asset_a == ETH
        assert store.global_withdrawal_count == 1

    def test_withdraw_b_symmetric(self) -> None:
        store = LedgerStore()
        store.deposit_asset_b("alice", 1000 * USD, PRICE)
        store.withdraw_asset_b("alice", 400 * USD, PRICE)
        vault = store.get("alice")
        assert vault.asset_b_balance == 600 * USD
        assert vault.total_usd == 600 * USD
        assert store.total_value_locked == (600 * USD * ETH * 10**8) // (2000 * 10**8 * USD)

    def test_insufficient_balance_before_mutation(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", 5, PRICE)
        with pytest.raises(InsufficientBalance) as exc_info:
            store.withdraw_asset_a("alice", 6, PRICE)
        err = exc_info.value
        assert (err.account, err.balance, err.requested) == ("alice", 5, 6)
        assert store.get("alice").asset_a_balance == 5
        assert store.global_withdrawal_count == 0

    def test_insufficient_balance_unknown_user(self) -> None:
        store = LedgerStore()
        with pytest.raises(InsufficientBalance) as exc_info:
            store.withdraw_asset_b("nobody", 1, PRICE)
        assert exc_info.value.balance == 0
        assert "nobody" not in store

    def test_balances_are_per_asset(self) -> None:
        store = LedgerStore()
        store.deposit_asset_b("alice", 100 * USD, PRICE)
        with pytest.raises(InsufficientBalance):
            store.withdraw_asset_a("alice", 1, PRICE)

    def test_total_usd_saturates_on_price_drift(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", ETH, PRICE)
        store.withdraw_asset_a("alice", ETH, PriceSnapshot(value=4000 * 10**8))
        vault = store.get("alice")
        assert vault.asset_a_balance == 0
        assert vault.total_usd == 0
        assert vault.cumulative_withdrawn_usd == 4000 * USD


# ---------------------------------------------------------------------------
# Rewards bookkeeping
# ---------------------------------------------------------------------------


class TestRewardBookkeeping:
    def test_mark_is_idempotent(self) -> None:
        store = LedgerStore()
        assert store.mark_reward_recipient("alice") is True
        assert store.mark_reward_recipient("alice") is False
        assert store.reward_granted == {"alice"}

    def test_record_reward(self) -> None:
        store = LedgerStore()
        store.record_reward("alice", 7)
        assert store.reward_ids["alice"] == 7


# ---------------------------------------------------------------------------
# Checkpoint / restore
# ---------------------------------------------------------------------------


class TestCheckpoint:
    def test_restore_removes_new_vault(self) -> None:
        store = LedgerStore()
        cp = store.checkpoint("alice")
        store.deposit_asset_a("alice", 3, PRICE)
        store.mark_reward_recipient("alice")
        store.record_reward("alice", 1)
        store.restore(cp)
        assert "alice" not in store
        assert store.total_value_locked == 0
        assert store.held_asset_a == 0
        assert store.global_deposit_count == 0
        assert "alice" not in store.reward_granted
        assert "alice" not in store.reward_ids

    def test_restore_existing_vault(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", 5, PRICE)
        cp = store.checkpoint("alice")
        store.withdraw_asset_a("alice", 2, PRICE)
        store.restore(cp)
        vault = store.get("alice")
        assert vault.asset_a_balance == 5
        assert vault.withdrawal_count == 0
        assert store.total_value_locked == 5
        assert store.global_withdrawal_count == 0
        assert isinstance(store.total_value_locked, CheckedUint)

    def test_restore_keeps_prior_reward(self) -> None:
        store = LedgerStore()
        store.mark_reward_recipient("alice")
        store.record_reward("alice", 3)
        cp = store.checkpoint("alice")
        store.restore(cp)
        assert "alice" in store.reward_granted
        assert store.reward_ids["alice"] == 3

    def test_checkpoint_does_not_alias_vault(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", 5, PRICE)
        cp = store.checkpoint("alice")
        store.deposit_asset_a("alice", 5, PRICE)
        assert cp.vault.asset_a_balance == 5


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestStoreSerialization:
    def test_roundtrip(self) -> None:
        store = LedgerStore()
        store.deposit_asset_a("alice", ETH, PRICE)
        store.deposit_asset_b("bob", 10 * USD, PRICE)
        store.mark_reward_recipient("alice")
        store.record_reward("alice", 1)
        restored = LedgerStore.from_json(store.to_json())
        assert restored.get("alice") == store.get("alice")
        assert restored.get("bob") == store.get("bob")
        assert restored.total_value_locked == store.total_value_locked
        assert restored.held_asset_a == ETH
        assert restored.global_deposit_count == 2
        assert restored.reward_granted == {"alice"}
        assert restored.reward_ids == {"alice": 1}

    def test_schema_version(self) -> None:
        obj = json.loads(LedgerStore().to_json())
        assert obj["v"] == 1

    def test_corrupt_data_returns_fresh_store(self) -> None:
        restored = LedgerStore.from_json("not json at all")
        assert len(restored) == 0
        assert restored.total_value_locked == 0

    def test_non_dict_returns_fresh_store(self) -> None:
        restored = LedgerStore.from_json('["a", "b"]')
        assert len(restored) == 0

    def test_none_returns_fresh_store(self) -> None:
        restored = LedgerStore.from_json(None)  # type: ignore[arg-type]
        assert len(restored) == 0

    @pytest.mark.parametrize(
        "obj",
        [
            {"total_value_locked": -5},
            {"held_asset_a": "abc"},
            {"global_deposit_count": UINT256_MAX + 1},
            {"vaults": {"u": {"asset_a_balance": "x"}}},
            {"reward_ids": {"u": "not-an-id"}},
            {"reward_granted": 7},
        ],
    )
    def test_invalid_fields_return_fresh_store(self, obj: dict, caplog) -> None:
        obj = {"v": 1, "total_value_locked": 3, "vaults": {"ok": {"asset_a_balance": 3}}, **obj}
        with caplog.at_level("WARNING", logger="duovault.ledger_store"):
            restored = LedgerStore.from_json(json.dumps(obj))
        assert len(restored) == 0
        assert restored.total_value_locked == 0
        assert restored.reward_ids == {}
        assert "invalid fields" in caplog.text

    def test_asset_b_value_locked_survives(self) -> None:
        store = LedgerStore()
        store.deposit_asset_b("bob", 1000 * USD, PRICE)
        restored = LedgerStore.from_json(store.to_json())
        assert restored.get("bob").asset_b_value_locked == ETH // 2
        restored.withdraw_asset_b("bob", 1000 * USD, PriceSnapshot(value=500 * 10**8))
        assert restored.total_value_locked == 0
