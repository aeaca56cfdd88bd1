"""create earnings

Revision ID: 3f9a1c2e7b40
Revises:
Create Date: 2024-08-14 23:50:01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UINT64_MAX = 2 ** 64 - 1

POSTGRES_UPDATED_AT_FUNCTION = """
CREATE OR REPLACE FUNCTION earnings_set_updated_at() RETURNS trigger AS $$
BEGIN
    IF NEW.updated_at = OLD.updated_at THEN
        NEW.updated_at = (clock_timestamp() AT TIME ZONE 'utc');
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

POSTGRES_UPDATED_AT_TRIGGER = """
CREATE TRIGGER trg_earnings_updated_at
BEFORE UPDATE ON earnings
FOR EACH ROW EXECUTE FUNCTION earnings_set_updated_at()
"""

SQLITE_UPDATED_AT_TRIGGER = """
CREATE TRIGGER trg_earnings_updated_at
AFTER UPDATE ON earnings
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
    UPDATE earnings SET updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now') WHERE id = NEW.id;
END
"""


def _dialect() -> str:
    return op.get_context().dialect.name


def upgrade() -> None:
    dialect = _dialect()

    if dialect in ("mysql", "mariadb"):
        created_default = sa.text("CURRENT_TIMESTAMP(6)")
        updated_default = sa.text("CURRENT_TIMESTAMP(6) ON UPDATE CURRENT_TIMESTAMP(6)")
    elif dialect == "postgresql":
        created_default = updated_default = sa.text("(now() AT TIME ZONE 'utc')")
    else:
        created_default = updated_default = sa.func.current_timestamp()

    amount_type = (
        sa.Numeric(20, 0)
        .with_variant(mysql.BIGINT(unsigned=True), "mysql", "mariadb")
        .with_variant(sa.BigInteger(), "sqlite")
    )
    timestamp_type = sa.DateTime().with_variant(mysql.TIMESTAMP(fsp=6), "mysql", "mariadb")

    op.create_table(
        "earnings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("miner_id", sa.Integer(), nullable=False),
        sa.Column("pool_id", sa.Integer(), nullable=False),
        sa.Column("challenge_id", sa.Integer(), nullable=False),
        sa.Column("amount", amount_type, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=created_default),
        sa.Column("updated_at", timestamp_type, nullable=False, server_default=updated_default),
        sa.CheckConstraint("amount >= 0", name="ck_earnings_amount_unsigned"),
        sqlite_autoincrement=True,
    )

    if dialect == "postgresql":
        op.create_check_constraint("ck_earnings_amount_max", "earnings", sa.text(f"amount <= {UINT64_MAX}"))
        op.execute(POSTGRES_UPDATED_AT_FUNCTION)
        op.execute(POSTGRES_UPDATED_AT_TRIGGER)
    elif dialect == "sqlite":
        op.execute(SQLITE_UPDATED_AT_TRIGGER)


def downgrade() -> None:
    dialect = _dialect()

    if dialect == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS trg_earnings_updated_at ON earnings")
        op.execute("DROP FUNCTION IF EXISTS earnings_set_updated_at()")
    elif dialect == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS trg_earnings_updated_at")

    op.drop_table("earnings")
