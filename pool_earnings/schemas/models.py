"""
Pydantic схемы для валидации данных - версия для Pydantic V2
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from typing_extensions import Annotated

from pool_earnings.utils.constants import (
    INT32_MIN,
    INT32_MAX,
    UINT64_MIN,
    UINT64_MAX,
    DEFAULT_AMOUNT,
    DEFAULT_PAGINATION_LIMIT,
    MAX_PAGINATION_LIMIT,
)

# ========== ТИПЫ КОЛОНОК ==========
# INT NOT NULL
Int32 = Annotated[int, Field(strict=True, ge=INT32_MIN, le=INT32_MAX)]
# BIGINT UNSIGNED
UInt64 = Annotated[int, Field(strict=True, ge=UINT64_MIN, le=UINT64_MAX)]
# Разница для относительного изменения amount
AmountDelta = Annotated[int, Field(strict=True, ge=-UINT64_MAX, le=UINT64_MAX)]


# ========== БАЗОВЫЕ СХЕМЫ ==========
class PaginationParams(BaseModel):
    """Параметры пагинации"""
    skip: int = Field(default=0, ge=0, description="Количество записей для пропуска")
    limit: int = Field(default=DEFAULT_PAGINATION_LIMIT, ge=1, le=MAX_PAGINATION_LIMIT,
                       description="Количество записей на странице")

    model_config = ConfigDict(from_attributes=True)


# ========== НАЧИСЛЕНИЯ ==========
class EarningBase(BaseModel):
    """Базовая схема начисления"""
    miner_id: Int32 = Field(description="ID майнера")
    pool_id: Int32 = Field(description="ID пула")
    challenge_id: Int32 = Field(description="ID челленджа (раунда)")

    model_config = ConfigDict(from_attributes=True)


class EarningCreate(EarningBase):
    """Схема для создания начисления"""
    amount: UInt64 = Field(default=DEFAULT_AMOUNT, description="Сумма в базовых единицах")


class EarningUpdate(BaseModel):
    """Схема для обновления суммы начисления"""
    amount: UInt64

    model_config = ConfigDict(from_attributes=True)


class EarningAdjust(BaseModel):
    """Относительное изменение суммы (может быть отрицательным)"""
    delta: AmountDelta

    model_config = ConfigDict(from_attributes=True)


class EarningFilter(PaginationParams):
    """Фильтр выборки начислений"""
    miner_id: Optional[Int32] = None
    pool_id: Optional[Int32] = None
    challenge_id: Optional[Int32] = None
    after_id: Optional[int] = Field(default=None, ge=0, description="Keyset курсор: последний полученный id")


class EarningResponse(EarningBase):
    """Схема ответа с данными начисления"""
    id: int
    amount: int
    created_at: datetime
    updated_at: datetime


class EarningTotals(BaseModel):
    """Сводка по начислениям"""
    count: int
    total_amount: int
    by_miner: Dict[int, int] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class EarningPage(BaseModel):
    """Страница начислений с информацией о пагинации"""
    items: List[EarningResponse]
    pagination: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)
