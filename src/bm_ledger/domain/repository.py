"""Protocols for the host ledger capabilities the engine depends on.

The engine never moves value itself: it asks a ValueTransferProtocol to debit
and credit holders inside the caller's transaction, and it reads logical time
from a BlockClockProtocol. Unit tests inject in-memory implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import LedgerEntryType


class ValueTransferProtocol(Protocol):
    async def balance_of(self, db: AsyncSession, holder_id: str) -> int: ...

    async def transfer(
        self,
        db: AsyncSession,
        source: str,
        target: str,
        amount: int,
        entry_type: LedgerEntryType,
        reference_id: str,
    ) -> None:
        """Move ``amount`` from source to target or raise InsufficientFundsError."""
        ...


class BlockClockProtocol(Protocol):
    async def current_block(self, db: AsyncSession) -> int: ...
