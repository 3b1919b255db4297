"""005: create engine_events table

Revision ID: 005
Revises: 004
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE engine_events (
            id              BIGSERIAL       PRIMARY KEY,
            market_id       BIGINT,
            event_type      VARCHAR(30)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_engine_event_type CHECK (
                event_type IN (
                    'MARKET_CREATED',
                    'STAKE_RECORDED',
                    'MARKET_RESOLVED',
                    'WINNINGS_CLAIMED',
                    'CONFIG_UPDATED',
                    'FEES_WITHDRAWN'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_engine_events_market_time ON engine_events (market_id, created_at);")
    op.execute("COMMENT ON TABLE engine_events IS 'Committed state transitions: append-only audit trail';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS engine_events CASCADE;")
