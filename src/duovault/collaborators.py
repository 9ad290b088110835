"""Interfaces of the external services the bank calls out to.

Concrete implementations live with the host; the bank only depends on
these Protocols.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetBToken(Protocol):
    """Standard fungible-token transfer interface for asset B."""

    async def transfer_from(self, owner: str, recipient: str, amount: int) -> bool: ...

    async def transfer(self, to: str, amount: int) -> bool: ...


@runtime_checkable
class NativePayout(Protocol):
    """Sends native asset A. Returns ``(success, raw_return_data)``."""

    async def send(self, to: str, amount: int) -> tuple[bool, bytes]: ...


@runtime_checkable
class RewardIssuer(Protocol):
    """Mints the one-time reward token. Returns the new token id."""

    async def mint(self, to: str, metadata_ref: str) -> int: ...
