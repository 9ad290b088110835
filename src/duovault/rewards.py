"""One-time reward issued when a vault's valuation crosses a threshold."""

from __future__ import annotations

import logging

from duovault.collaborators import RewardIssuer
from duovault.errors import RewardIssuanceFailed
from duovault.events import Journal, RewardGranted
from duovault.ledger_store import LedgerStore
from duovault.oracle import PriceSnapshot
from duovault.vault import Vault

logger = logging.getLogger(__name__)


class RewardTrigger:
    """Post-deposit eligibility check and issuance.

    ``threshold_amount`` is in asset-A base units; it is valued with the
    same snapshot that priced the triggering deposit.
    """

    def __init__(self, issuer: RewardIssuer, threshold_amount: int, metadata_ref: str) -> None:
        self._issuer = issuer
        self.threshold_amount = threshold_amount
        self.metadata_ref = metadata_ref

    def is_eligible(self, store: LedgerStore, user: str, vault: Vault, snapshot: PriceSnapshot) -> bool:
        if user in store.reward_granted:
            return False
        return int(vault.total_usd) >= snapshot.to_usd(self.threshold_amount)

    async def evaluate(
        self,
        store: LedgerStore,
        user: str,
        vault: Vault,
        snapshot: PriceSnapshot,
        journal: Journal,
    ) -> int | None:
        """Issue the reward if ``user`` is eligible. Returns the reward id or None.

        The recipient is marked before the external mint. A mint failure
        raises ``RewardIssuanceFailed``; the caller is expected to restore
        its checkpoint, which also clears the mark.
        """
        if not self.is_eligible(store, user, vault, snapshot):
            return None
        store.mark_reward_recipient(user)

        try:
            reward_id = await self._issuer.mint(user, self.metadata_ref)
        except Exception as exc:
            raise RewardIssuanceFailed(user) from exc

        store.record_reward(user, int(reward_id))
        journal.emit(RewardGranted(user=user, reward_id=int(reward_id)))
        logger.info("Reward %s issued to %s (valuation %d).", reward_id, user, int(vault.total_usd))
        return int(reward_id)
