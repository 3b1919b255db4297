"""002: create markets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                  BIGINT          PRIMARY KEY,
            start_price         BIGINT          NOT NULL,
            end_price           BIGINT          NOT NULL DEFAULT 0,
            total_up_stake      BIGINT          NOT NULL DEFAULT 0,
            total_down_stake    BIGINT          NOT NULL DEFAULT 0,
            start_block         BIGINT          NOT NULL,
            end_block           BIGINT          NOT NULL,
            resolved            BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_start_price_gt_0   CHECK (start_price > 0),
            CONSTRAINT ck_markets_end_price_gte_0    CHECK (end_price >= 0),
            CONSTRAINT ck_markets_up_stake_gte_0     CHECK (total_up_stake >= 0),
            CONSTRAINT ck_markets_down_stake_gte_0   CHECK (total_down_stake >= 0),
            CONSTRAINT ck_markets_window             CHECK (end_block > start_block),
            CONSTRAINT ck_markets_resolution         CHECK (resolved = (end_price > 0))
        );
    """)
    op.execute("CREATE INDEX idx_markets_resolved ON markets (resolved, end_block);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Binary UP/DOWN markets: price anchors, block window, stake totals';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
