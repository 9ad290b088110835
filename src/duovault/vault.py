"""Per-user vault record.

Pure data model — no I/O. Balances are in each asset's base units; all
USD figures are in asset-B base units (1e6 == 1 USD).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from duovault.numeric import WrappingUint

_FIELDS = (
    "asset_a_balance",
    "asset_b_balance",
    "total_usd",
    "cumulative_deposited_usd",
    "cumulative_withdrawn_usd",
    "deposit_count",
    "withdrawal_count",
    "asset_b_value_locked",
)


@dataclass
class Vault:
    """Balances and lifetime statistics for a single user.

    Every field wraps on overflow (``WrappingUint``); see ``duovault.numeric``.
    ``total_usd`` is maintained incrementally at each operation's price and
    is never re-derived from the balances. ``asset_b_value_locked`` is the
    asset-A value this vault's asset B added to the bank's TVL, priced at
    each deposit.
    """

    asset_a_balance: WrappingUint = field(default_factory=WrappingUint)
    asset_b_balance: WrappingUint = field(default_factory=WrappingUint)
    total_usd: WrappingUint = field(default_factory=WrappingUint)
    cumulative_deposited_usd: WrappingUint = field(default_factory=WrappingUint)
    cumulative_withdrawn_usd: WrappingUint = field(default_factory=WrappingUint)
    deposit_count: WrappingUint = field(default_factory=WrappingUint)
    withdrawal_count: WrappingUint = field(default_factory=WrappingUint)
    asset_b_value_locked: WrappingUint = field(default_factory=WrappingUint)

    def __post_init__(self) -> None:
        # Accept plain ints (tests, deserialization) and coerce to the policy type.
        for name in _FIELDS:
            setattr(self, name, WrappingUint(getattr(self, name)))

    def copy(self) -> Vault:
        return dataclasses.replace(self)

    # -- serialization --------------------------------------------------------

    def to_dict(self) -> dict[str, int]:
        return {name: int(getattr(self, name)) for name in _FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Vault:
        return cls(**{name: int(data.get(name, 0)) for name in _FIELDS})
