"""
Переносимые типы колонок: BIGINT UNSIGNED и TIMESTAMP с микросекундами
"""
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Numeric
from sqlalchemy.dialects import mysql
from sqlalchemy.types import TypeDecorator


class UnsignedBigInteger(TypeDecorator):
    """
    64-битное беззнаковое целое.

    MySQL: BIGINT UNSIGNED
    PostgreSQL: NUMERIC(20, 0), беззнаковых целых там нет
    SQLite: BIGINT (хранилище ограничено знаковыми 64 битами)
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name in ("mysql", "mariadb"):
            return dialect.type_descriptor(mysql.BIGINT(unsigned=True))
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(20, 0, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name in ("mysql", "mariadb", "sqlite"):
            return int(value)
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class Timestamp(TypeDecorator):
    """TIMESTAMP без часового пояса с точностью до микросекунд"""

    impl = DateTime(timezone=False)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name in ("mysql", "mariadb"):
            return dialect.type_descriptor(mysql.TIMESTAMP(fsp=6))
        return dialect.type_descriptor(DateTime(timezone=False))
