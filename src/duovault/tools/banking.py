"""Banking tools: deposit, withdraw, account_status, bank_status.

Host-facing wrappers around ``Bank`` that return plain dicts. Ledger
errors become ``{"success": False, ...}`` payloads with the error's
structured fields; anything else propagates.
"""

from __future__ import annotations

import logging
from typing import Any

from duovault.bank import Bank
from duovault.errors import LedgerError
from duovault.price_feed_client import PriceFeedError

logger = logging.getLogger(__name__)

_ASSETS = ("A", "B")

# Structured attributes copied from an error into its payload.
_ERROR_FIELDS = ("requested", "available", "cap", "account", "balance", "reason", "price", "role")


def _error_payload(exc: Exception) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "error": str(exc),
        "error_type": type(exc).__name__,
    }
    for name in _ERROR_FIELDS:
        if hasattr(exc, name):
            value = getattr(exc, name)
            payload[name] = value.decode(errors="replace") if isinstance(value, bytes) else value
    return payload


def _missing_vault(user_id: str) -> dict[str, Any]:
    logger.error("No vault for %s after a committed operation.", user_id)
    return {"success": False, "error": f"No vault found for {user_id!r}."}


def _normalize_asset(asset: str) -> str | None:
    asset = asset.strip().upper()
    return asset if asset in _ASSETS else None


async def deposit_tool(bank: Bank, user_id: str, asset: str, amount: int) -> dict[str, Any]:
    """Deposit ``amount`` base units of asset ``"A"`` or ``"B"`` for ``user_id``.

    Returns dict with:
        success: True when the deposit committed.
        balance_a / balance_b / total_usd: Vault figures after the deposit.
        reward_id: Present when this deposit triggered the one-time reward.
    """
    normalized = _normalize_asset(asset)
    if normalized is None:
        return {"success": False, "error": f"Unknown asset {asset!r}; use 'A' or 'B'."}

    had_reward = bank.has_reward(user_id)
    try:
        if normalized == "A":
            await bank.deposit_asset_a(user_id, amount)
        else:
            await bank.deposit_asset_b(user_id, amount)
    except (LedgerError, PriceFeedError) as e:
        logger.info("Deposit by %s rejected: %s", user_id, e)
        return _error_payload(e)

    vault = bank.get_vault(user_id)
    if vault is None:
        return _missing_vault(user_id)
    result: dict[str, Any] = {
        "success": True,
        "asset": normalized,
        "amount": amount,
        "balance_a": int(vault.asset_a_balance),
        "balance_b": int(vault.asset_b_balance),
        "total_usd": int(vault.total_usd),
    }
    if not had_reward and bank.has_reward(user_id):
        result["reward_id"] = bank.reward_id(user_id)
    return result


async def withdraw_tool(bank: Bank, user_id: str, asset: str, amount: int) -> dict[str, Any]:
    """Withdraw ``amount`` base units of asset ``"A"`` or ``"B"`` to ``user_id``."""
    normalized = _normalize_asset(asset)
    if normalized is None:
        return {"success": False, "error": f"Unknown asset {asset!r}; use 'A' or 'B'."}

    try:
        if normalized == "A":
            await bank.withdraw_asset_a(user_id, amount)
        else:
            await bank.withdraw_asset_b(user_id, amount)
    except (LedgerError, PriceFeedError) as e:
        logger.info("Withdrawal by %s rejected: %s", user_id, e)
        return _error_payload(e)

    vault = bank.get_vault(user_id)
    if vault is None:
        return _missing_vault(user_id)
    return {
        "success": True,
        "asset": normalized,
        "amount": amount,
        "balance_a": int(vault.asset_a_balance),
        "balance_b": int(vault.asset_b_balance),
        "total_usd": int(vault.total_usd),
    }


def account_status_tool(bank: Bank, user_id: str) -> dict[str, Any]:
    """Return the user's vault figures and counters. Read-only."""
    vault = bank.get_vault(user_id)
    deposits, withdrawals = bank.get_account_counts(user_id)
    if vault is None:
        return {
            "success": True,
            "exists": False,
            "deposit_count": deposits,
            "withdrawal_count": withdrawals,
        }
    return {
        "success": True,
        "exists": True,
        **vault.to_dict(),
        "reward_granted": bank.has_reward(user_id),
        "reward_id": bank.reward_id(user_id),
    }


async def bank_status_tool(bank: Bank) -> dict[str, Any]:
    """Return global ledger figures and the live oracle price."""
    result: dict[str, Any] = {
        "success": True,
        "total_value_locked": bank.total_value_locked,
        "bank_cap": bank.config.bank_cap,
        "available_capacity": max(bank.config.bank_cap - bank.total_value_locked, 0),
        "withdrawal_cap": bank.config.withdrawal_cap,
        "asset_b_withdrawal_cap": bank.config.effective_asset_b_withdrawal_cap,
        "contract_balance": bank.get_contract_balance(),
    }
    try:
        result["latest_price"] = await bank.get_latest_price()
    except PriceFeedError as e:
        result["latest_price"] = None
        result["price_error"] = str(e)
    return result
