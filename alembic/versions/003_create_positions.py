"""003: create positions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            market_id       BIGINT          NOT NULL REFERENCES markets (id),
            participant     VARCHAR(64)     NOT NULL,
            direction       VARCHAR(4)      NOT NULL,
            stake           BIGINT          NOT NULL,
            claimed         BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_positions             PRIMARY KEY (market_id, participant),
            CONSTRAINT ck_positions_direction   CHECK (direction IN ('UP', 'DOWN')),
            CONSTRAINT ck_positions_stake_gt_0  CHECK (stake > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE positions IS 'One prediction per (market, participant); a restake overwrites';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
