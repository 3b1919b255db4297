"""ValueTransferRepository: concrete implementation of ValueTransferProtocol.

The debit is a guarded UPDATE ... WHERE balance >= :amount RETURNING; zero rows
means the source cannot cover the amount. Both legs are journaled to
ledger_entries (append-only).

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import LedgerEntryType
from src.bm_common.errors import InsufficientFundsError

_GET_BALANCE_SQL = text("SELECT balance FROM accounts WHERE holder_id = :holder_id")

_DEBIT_SQL = text("""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE holder_id = :holder_id AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    INSERT INTO accounts (holder_id, balance)
    VALUES (:holder_id, :amount)
    ON CONFLICT (holder_id) DO UPDATE
        SET balance = accounts.balance + EXCLUDED.balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING balance
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (holder_id, entry_type, amount, balance_after, reference_type, reference_id)
    VALUES (:holder_id, :entry_type, :amount, :balance_after, :reference_type, :reference_id)
""")


class ValueTransferRepository:
    """Moves value between holders of the accounts table."""

    async def balance_of(self, db: AsyncSession, holder_id: str) -> int:
        result = await db.execute(_GET_BALANCE_SQL, {"holder_id": holder_id})
        balance = result.scalar_one_or_none()
        return int(balance) if balance is not None else 0

    async def transfer(
        self,
        db: AsyncSession,
        source: str,
        target: str,
        amount: int,
        entry_type: LedgerEntryType,
        reference_id: str,
    ) -> None:
        if amount == 0:
            return
        debit_row = (
            await db.execute(_DEBIT_SQL, {"holder_id": source, "amount": amount})
        ).fetchone()
        if debit_row is None:
            raise InsufficientFundsError(amount, await self.balance_of(db, source))
        credit_row = (
            await db.execute(_CREDIT_SQL, {"holder_id": target, "amount": amount})
        ).fetchone()

        await _write_ledger(db, source, entry_type, -amount, debit_row.balance, reference_id)
        await _write_ledger(db, target, entry_type, amount, credit_row.balance, reference_id)


async def _write_ledger(
    db: AsyncSession,
    holder_id: str,
    entry_type: LedgerEntryType,
    amount: int,
    balance_after: int,
    reference_id: str,
) -> None:
    await db.execute(
        _INSERT_LEDGER_SQL,
        {
            "holder_id": holder_id,
            "entry_type": entry_type.value,
            "amount": amount,
            "balance_after": balance_after,
            "reference_type": "MARKET",
            "reference_id": reference_id,
        },
    )
