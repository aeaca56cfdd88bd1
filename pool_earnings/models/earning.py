from sqlalchemy import Column, Integer, CheckConstraint, func, text
from sqlalchemy.orm import validates

from pool_earnings.models.database import Base
from pool_earnings.models.types import UnsignedBigInteger, Timestamp
from pool_earnings.utils.constants import EARNINGS_TABLE, DEFAULT_AMOUNT
from pool_earnings.utils.helpers import utcnow


class Earning(Base):
    __tablename__ = EARNINGS_TABLE
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_earnings_amount_unsigned"),
        # Без AUTOINCREMENT SQLite может повторно выдать id удаленной строки
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    miner_id = Column(Integer, nullable=False)
    pool_id = Column(Integer, nullable=False)
    challenge_id = Column(Integer, nullable=False)
    amount = Column(UnsignedBigInteger(), nullable=False, default=DEFAULT_AMOUNT, server_default=text("0"))
    created_at = Column(Timestamp(), nullable=False, default=utcnow, server_default=func.current_timestamp())
    updated_at = Column(
        Timestamp(),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.current_timestamp(),
    )

    @validates("created_at")
    def _validate_created_at(self, key, value):
        """created_at задается один раз"""
        current = self.__dict__.get(key)
        if current is not None and value != current:
            raise ValueError("created_at is immutable once set")
        return value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "miner_id": self.miner_id,
            "pool_id": self.pool_id,
            "challenge_id": self.challenge_id,
            "amount": self.amount,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<Earning {self.id} miner={self.miner_id} pool={self.pool_id} challenge={self.challenge_id} amount={self.amount}>"
