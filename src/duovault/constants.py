"""Constants for dual-asset ledger accounting."""

UINT256_MAX = 2**256 - 1

ASSET_A_DECIMALS = 18  # native unit (wei-style)
ASSET_B_DECIMALS = 6  # USD-pegged token, 1 unit == 1 USD
PRICE_DECIMALS = 8  # oracle answers are scaled by 1e8

ADMIN_ROLE = "ADMIN_ROLE"

DEFAULT_REWARD_METADATA = "ipfs://duovault-reward/metadata.json"
