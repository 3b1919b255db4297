"""Reads logical time from the host ledger head.

The chain_head row is written by the host ledger's block progression; the
engine only ever reads it.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.errors import InternalError

_HEAD_SQL = text("SELECT block_height FROM chain_head WHERE id = 1")


class ChainHeadClock:
    async def current_block(self, db: AsyncSession) -> int:
        height = (await db.execute(_HEAD_SQL)).scalar_one_or_none()
        if height is None:
            raise InternalError("chain_head row is missing")
        return int(height)
