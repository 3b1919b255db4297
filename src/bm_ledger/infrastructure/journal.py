"""Append-only engine event journal (engine_events).

Called from application services within the operation's transaction, so an
event exists if and only if its state transition was committed.
"""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import EngineEventType

_INSERT_EVENT_SQL = text("""
    INSERT INTO engine_events (market_id, event_type, payload)
    VALUES (:market_id, :event_type, :payload)
""")


async def write_engine_event(
    event_type: EngineEventType,
    market_id: int | None,
    payload: dict[str, object],
    db: AsyncSession,
) -> None:
    """Insert one row into engine_events. market_id is None for config events."""
    await db.execute(
        _INSERT_EVENT_SQL,
        {
            "market_id": market_id,
            "event_type": event_type.value,
            "payload": json.dumps(payload),
        },
    )
