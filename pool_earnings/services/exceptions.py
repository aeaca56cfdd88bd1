"""
Ошибки хранилища начислений
"""
from typing import Optional


class EarningsError(Exception):
    """Базовая ошибка хранилища начислений"""


class EarningValidationError(EarningsError, ValueError):
    """Некорректные входные данные (NULL, выход за диапазон INT, неверный тип)"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AmountOverflowError(EarningValidationError, OverflowError):
    """amount вне диапазона BIGINT UNSIGNED"""

    def __init__(self, amount: int, message: Optional[str] = None):
        super().__init__(message or f"amount {amount} is out of unsigned 64-bit range", field="amount")
        self.amount = amount


class ConstraintViolationError(EarningValidationError):
    """Нарушение ограничения целостности на стороне БД"""


class EarningNotFoundError(EarningsError, LookupError):
    """Начисление с таким id не существует"""

    def __init__(self, earning_id: int):
        super().__init__(f"earning {earning_id} not found")
        self.earning_id = earning_id


class EarningsStorageError(EarningsError):
    """Прочие ошибки БД (соединение, транзакция)"""
