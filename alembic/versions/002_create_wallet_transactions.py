"""002: create wallet_transactions table

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
        CREATE TABLE wallet_transactions (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL
                                REFERENCES accounts (user_id) ON DELETE CASCADE,
            asset_id            VARCHAR(32)     NOT NULL,
            type                VARCHAR(4)      NOT NULL,
            quantity            NUMERIC(28, 8)  NOT NULL,
            unit_price          NUMERIC(18, 2)  NOT NULL,
            transaction_date    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_tx_type CHECK (type IN ('buy', 'sell')),
            CONSTRAINT ck_wallet_tx_quantity_gt_0 CHECK (quantity > 0),
            CONSTRAINT ck_wallet_tx_unit_price_gt_0 CHECK (unit_price > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_wallet_tx_replay
        ON wallet_transactions (user_id, asset_id, transaction_date, id);
    """)
    op.execute("""
        COMMENT ON TABLE wallet_transactions
        IS 'Trade ledger, append-only, never updated, removed only with the account';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
