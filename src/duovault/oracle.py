"""Price oracle adapter.

``PriceOracle`` wraps any ``PriceFeed`` and returns a ``PriceSnapshot``.
It never caches and never validates — staleness and sign are policy
decisions left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from duovault.constants import ASSET_A_DECIMALS, ASSET_B_DECIMALS, PRICE_DECIMALS

logger = logging.getLogger(__name__)


@runtime_checkable
class PriceFeed(Protocol):
    """Latest-answer price source (asset A priced in USD)."""

    async def latest_price(self) -> tuple[int, dict[str, Any]]: ...


@dataclass(frozen=True)
class PriceSnapshot:
    """A single price observation, reused for a whole operation.

    ``value`` is USD per whole asset-A unit scaled by ``10**decimals``.
    USD amounts are expressed in asset-B base units.
    """

    value: int
    decimals: int = PRICE_DECIMALS
    asset_a_decimals: int = ASSET_A_DECIMALS
    asset_b_decimals: int = ASSET_B_DECIMALS
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_usd(self, amount_a: int) -> int:
        """Convert asset-A base units to USD (asset-B base units), rounding down."""
        return (amount_a * self.value * 10**self.asset_b_decimals) // (
            10**self.asset_a_decimals * 10**self.decimals
        )

    def to_asset_a(self, amount_b: int) -> int:
        """Convert asset-B base units to the asset-A equivalent, rounding down."""
        return (amount_b * 10**self.asset_a_decimals * 10**self.decimals) // (
            self.value * 10**self.asset_b_decimals
        )


class PriceOracle:
    """Live price lookups against a replaceable feed."""

    def __init__(
        self,
        feed: PriceFeed,
        decimals: int = PRICE_DECIMALS,
        asset_a_decimals: int = ASSET_A_DECIMALS,
        asset_b_decimals: int = ASSET_B_DECIMALS,
    ) -> None:
        self._feed = feed
        self._decimals = decimals
        self._asset_a_decimals = asset_a_decimals
        self._asset_b_decimals = asset_b_decimals

    @property
    def feed(self) -> PriceFeed:
        return self._feed

    @feed.setter
    def feed(self, feed: PriceFeed) -> None:
        logger.info("Price feed replaced: %r -> %r.", self._feed, feed)
        self._feed = feed

    async def get_price(self) -> PriceSnapshot:
        """Fetch the most recent answer from the feed."""
        answer, metadata = await self._feed.latest_price()
        return PriceSnapshot(
            value=int(answer),
            decimals=self._decimals,
            asset_a_decimals=self._asset_a_decimals,
            asset_b_decimals=self._asset_b_decimals,
            metadata=dict(metadata or {}),
        )
