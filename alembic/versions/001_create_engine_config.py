"""001: create engine_config table and timestamp trigger function

Revision ID: 001
Revises: 
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE engine_config (
            id              SMALLINT        PRIMARY KEY DEFAULT 1,
            owner_address   VARCHAR(64)     NOT NULL,
            oracle_address  VARCHAR(64)     NOT NULL,
            minimum_stake   BIGINT          NOT NULL,
            fee_percentage  SMALLINT        NOT NULL,
            next_market_id  BIGINT          NOT NULL DEFAULT 1,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_engine_config_singleton   CHECK (id = 1),
            CONSTRAINT ck_engine_config_min_stake   CHECK (minimum_stake > 0),
            CONSTRAINT ck_engine_config_fee         CHECK (fee_percentage BETWEEN 0 AND 100),
            CONSTRAINT ck_engine_config_next_id     CHECK (next_market_id >= 1)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_engine_config_updated_at
            BEFORE UPDATE ON engine_config
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON TABLE engine_config IS "
        "'Single owner-mutable record; row lock serializes every mutating call';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS engine_config CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
