"""
Тесты модели Earning и переносимых типов колонок
"""
import pytest
from datetime import datetime
from decimal import Decimal

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.schema import CreateTable

from pool_earnings.models import Base, Earning
from pool_earnings.models.types import UnsignedBigInteger


def _ddl(dialect) -> str:
    return str(CreateTable(Earning.__table__).compile(dialect=dialect))


class TestEarningTable:
    """Структура таблицы earnings"""

    def test_registered_in_metadata(self):
        assert "earnings" in Base.metadata.tables
        assert Earning.__tablename__ == "earnings"

    def test_columns(self):
        columns = Earning.__table__.c

        assert [column.name for column in columns] == [
            "id", "miner_id", "pool_id", "challenge_id", "amount", "created_at", "updated_at"
        ]
        assert columns.id.primary_key
        assert columns.id.autoincrement is True
        for name in ("miner_id", "pool_id", "challenge_id", "amount", "created_at", "updated_at"):
            assert columns[name].nullable is False

    def test_no_unique_constraint_on_tuple(self):
        """(miner_id, pool_id, challenge_id) не уникален"""
        table = Earning.__table__
        assert not [c for c in table.constraints if c.__class__.__name__ == "UniqueConstraint"]
        assert not table.indexes

    def test_mysql_ddl(self):
        ddl = _ddl(mysql.dialect())

        assert "BIGINT UNSIGNED" in ddl
        assert "TIMESTAMP(6)" in ddl
        assert "AUTO_INCREMENT" in ddl
        assert "amount >= 0" in ddl

    def test_postgresql_ddl(self):
        ddl = _ddl(postgresql.dialect())

        assert "NUMERIC(20, 0)" in ddl
        assert "SERIAL" in ddl

    def test_sqlite_ddl(self):
        ddl = _ddl(sqlite.dialect())

        assert "AUTOINCREMENT" in ddl
        assert "BIGINT" in ddl


class TestCreatedAtImmutable:
    """created_at задается один раз"""

    def test_reassign_rejected(self):
        created = datetime(2024, 8, 14, 23, 50, 1)
        earning = Earning(miner_id=1, pool_id=1, challenge_id=1, created_at=created)

        with pytest.raises(ValueError):
            earning.created_at = datetime(2025, 1, 1)

        assert earning.created_at == created

    def test_same_value_allowed(self):
        created = datetime(2024, 8, 14, 23, 50, 1)
        earning = Earning(miner_id=1, pool_id=1, challenge_id=1, created_at=created)

        earning.created_at = created
        assert earning.created_at == created

    def test_to_dict_and_repr(self):
        earning = Earning(id=7, miner_id=1, pool_id=2, challenge_id=3, amount=500)

        assert earning.to_dict()["amount"] == 500
        assert "Earning 7" in repr(earning)


class TestUnsignedBigInteger:
    """Конвертация значений amount"""

    def test_bind_postgresql_uses_decimal(self):
        value = UnsignedBigInteger().process_bind_param(2 ** 64 - 1, postgresql.dialect())
        assert value == Decimal(2 ** 64 - 1)

    def test_bind_mysql_uses_int(self):
        value = UnsignedBigInteger().process_bind_param(500, mysql.dialect())
        assert value == 500
        assert isinstance(value, int)

    def test_result_converted_to_int(self):
        value = UnsignedBigInteger().process_result_value(Decimal("18446744073709551615"), postgresql.dialect())
        assert value == 2 ** 64 - 1
        assert isinstance(value, int)

    def test_none_passthrough(self):
        assert UnsignedBigInteger().process_bind_param(None, sqlite.dialect()) is None
        assert UnsignedBigInteger().process_result_value(None, sqlite.dialect()) is None


class TestTableHelpers:
    """create_tables / drop_tables"""

    @pytest.mark.asyncio
    async def test_drop_and_recreate(self, engine):
        from sqlalchemy import inspect
        from pool_earnings.models.database import create_tables, drop_tables

        await drop_tables(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "earnings" not in tables

        await create_tables(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "earnings" in tables
