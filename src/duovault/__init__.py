"""duovault — dual-asset vault ledger.

Per-user balances of a native asset and a USD-pegged token, valued through
a live price feed, with a global bank cap, a per-withdrawal cap and a
one-time valuation reward.
"""

__version__ = "0.1.0"

from duovault.authorization import Authorizer, RoleRegistry
from duovault.bank import Bank
from duovault.certificate import CertificateError, verify_role_certificate
from duovault.collaborators import AssetBToken, NativePayout, RewardIssuer
from duovault.config import BankConfig
from duovault.constants import ADMIN_ROLE, PRICE_DECIMALS
from duovault.errors import (
    ArithmeticOverflow,
    BankCapExceeded,
    InsufficientBalance,
    InvalidPrice,
    LedgerError,
    ReentrantCall,
    RewardIssuanceFailed,
    TransferFailed,
    Unauthorized,
    WithdrawalCapExceeded,
    ZeroAmount,
    ZeroDeposit,
    ZeroWithdrawal,
)
from duovault.events import EventBus
from duovault.ledger_store import LedgerStore
from duovault.oracle import PriceFeed, PriceOracle, PriceSnapshot
from duovault.price_feed_client import HttpPriceFeed, PriceFeedError
from duovault.vault import Vault

__all__ = [
    "ADMIN_ROLE",
    "PRICE_DECIMALS",
    "ArithmeticOverflow",
    "AssetBToken",
    "Authorizer",
    "Bank",
    "BankCapExceeded",
    "BankConfig",
    "CertificateError",
    "EventBus",
    "HttpPriceFeed",
    "InsufficientBalance",
    "InvalidPrice",
    "LedgerError",
    "LedgerStore",
    "NativePayout",
    "PriceFeed",
    "PriceFeedError",
    "PriceOracle",
    "PriceSnapshot",
    "ReentrantCall",
    "RewardIssuanceFailed",
    "RewardIssuer",
    "RoleRegistry",
    "TransferFailed",
    "Unauthorized",
    "Vault",
    "WithdrawalCapExceeded",
    "ZeroAmount",
    "ZeroDeposit",
    "ZeroWithdrawal",
    "verify_role_certificate",
]
