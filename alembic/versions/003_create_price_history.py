"""003: create price_history table

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
        CREATE TABLE price_history (
            id          BIGSERIAL       PRIMARY KEY,
            asset_id    VARCHAR(32)     NOT NULL,
            price_date  TIMESTAMPTZ     NOT NULL,
            price       NUMERIC(18, 2)  NOT NULL,
            CONSTRAINT ck_price_history_price_gt_0 CHECK (price > 0)
        );
    """)
    op.execute("CREATE INDEX idx_price_history_latest ON price_history (asset_id, price_date DESC);")
    op.execute("COMMENT ON TABLE price_history IS 'Written by the price simulator; read-only here';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS price_history CASCADE;")
