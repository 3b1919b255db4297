"""006: create chain_head table

Revision ID: 006
Revises: 005
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE chain_head (
            id              SMALLINT        PRIMARY KEY DEFAULT 1,
            block_height    BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_chain_head_singleton CHECK (id = 1),
            CONSTRAINT ck_chain_head_height_gte_0 CHECK (block_height >= 0)
        );
    """)
    op.execute("INSERT INTO chain_head (id, block_height) VALUES (1, 0);")
    op.execute("""
        CREATE TRIGGER trg_chain_head_updated_at
            BEFORE UPDATE ON chain_head
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE chain_head IS 'Host ledger head height: written by the host, read by the engine';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS chain_head CASCADE;")
