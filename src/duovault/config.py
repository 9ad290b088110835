"""Bank configuration — plain frozen dataclass, no pydantic.

The host application constructs this from its own settings (env vars,
pydantic-settings, etc.) and passes it to ``Bank``.
"""

from dataclasses import dataclass

from duovault.constants import (
    ASSET_A_DECIMALS,
    ASSET_B_DECIMALS,
    DEFAULT_REWARD_METADATA,
)


@dataclass(frozen=True)
class BankConfig:
    bank_cap: int  # asset-A base units
    withdrawal_cap: int  # asset-A base units, per operation
    reward_threshold: int = 10**ASSET_A_DECIMALS  # asset-A base units
    asset_b_withdrawal_cap: int | None = None  # asset-B base units; None -> withdrawal_cap
    asset_a_decimals: int = ASSET_A_DECIMALS
    asset_b_decimals: int = ASSET_B_DECIMALS
    reward_metadata: str = DEFAULT_REWARD_METADATA
    bank_address: str = "duovault"

    def __post_init__(self) -> None:
        if self.bank_cap <= 0:
            raise ValueError(f"bank_cap must be positive, got {self.bank_cap}")
        if self.withdrawal_cap <= 0:
            raise ValueError(f"withdrawal_cap must be positive, got {self.withdrawal_cap}")
        if self.asset_b_withdrawal_cap is not None and self.asset_b_withdrawal_cap <= 0:
            raise ValueError(
                f"asset_b_withdrawal_cap must be positive, got {self.asset_b_withdrawal_cap}"
            )
        if self.reward_threshold < 0:
            raise ValueError(f"reward_threshold must be non-negative, got {self.reward_threshold}")
        if self.asset_a_decimals < 0 or self.asset_b_decimals < 0:
            raise ValueError("asset decimals must be non-negative")

    @property
    def effective_asset_b_withdrawal_cap(self) -> int:
        if self.asset_b_withdrawal_cap is None:
            return self.withdrawal_cap
        return self.asset_b_withdrawal_cap
