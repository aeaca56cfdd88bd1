"""
Сервис хранилища начислений (таблица earnings)
"""
from typing import Optional, Dict, List, Iterable, Union, Callable, Type, Any

from pydantic import BaseModel, ValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, DataError
from sqlalchemy.ext.asyncio import async_sessionmaker

from pool_earnings.utils import config
from pool_earnings.utils.constants import INT32_MIN, INT32_MAX, UINT64_MIN, UINT64_MAX, DEFAULT_AMOUNT
from pool_earnings.utils.helpers import utcnow, next_timestamp, calculate_pagination_info
from pool_earnings.utils.logging_config import StructuredLogger
from pool_earnings.models.database import AsyncSessionLocal
from pool_earnings.models.earning import Earning
from pool_earnings.schemas.models import (
    EarningCreate,
    EarningUpdate,
    EarningAdjust,
    EarningFilter,
    EarningResponse,
    EarningTotals,
    EarningPage,
)
from pool_earnings.services.exceptions import (
    EarningsError,
    EarningValidationError,
    AmountOverflowError,
    ConstraintViolationError,
    EarningNotFoundError,
    EarningsStorageError,
)

logger = StructuredLogger("earnings")

_AMOUNT_FIELDS = ("amount", "delta")
_RANGE_ERROR_TYPES = ("less_than_equal", "greater_than_equal")


def _translate_validation_error(exc: ValidationError) -> EarningValidationError:
    """Pydantic ValidationError -> ошибка хранилища"""
    errors = exc.errors()

    # Выход amount за BIGINT UNSIGNED важнее прочих ошибок
    for err in errors:
        field = err["loc"][0] if err["loc"] else None
        if field in _AMOUNT_FIELDS and err["type"] in _RANGE_ERROR_TYPES:
            return AmountOverflowError(err["input"])

    first = errors[0]
    field = str(first["loc"][0]) if first["loc"] else None
    if first["type"] == "missing" or first.get("input", ...) is None:
        return EarningValidationError(f"{field} must not be null", field=field)
    return EarningValidationError(f"{field}: {first['msg']}", field=field)


def _translate_db_error(exc: Exception, amount: Optional[int] = None) -> EarningsError:
    """Ошибка SQLAlchemy или драйвера -> ошибка хранилища"""
    orig = getattr(exc, "orig", None)
    detail = str(orig or exc)

    # SQLite хранит только знаковые 64 бита: драйвер бросает OverflowError на amount > 2**63 - 1
    if isinstance(exc, OverflowError) or isinstance(orig, OverflowError):
        if amount is not None:
            return AmountOverflowError(amount, detail)
        return EarningValidationError(detail, field="amount")
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(detail)
    if isinstance(exc, DataError):
        if amount is not None and "range" in detail.lower():
            return AmountOverflowError(amount, detail)
        return EarningValidationError(detail)
    return EarningsStorageError(detail)


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and INT32_MIN <= value <= INT32_MAX


class EarningsService:
    """Хранилище начислений: создание, изменение суммы, выборки"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or AsyncSessionLocal

    # ========== ВАЛИДАЦИЯ ==========

    @staticmethod
    def _validate(schema: Type[BaseModel], event: str, **data) -> Any:
        """Валидация входных данных схемой, ошибки переводятся в EarningValidationError"""
        try:
            return schema(**data)
        except ValidationError as e:
            error = _translate_validation_error(e)
            logger.warning(
                "Некорректные данные начисления",
                event=event,
                field=error.field,
                error=str(error),
                error_type=type(error).__name__
            )
            raise error from e

    @staticmethod
    def _check_id(earning_id: Any, event: str):
        if isinstance(earning_id, bool) or not isinstance(earning_id, int):
            error = EarningValidationError(f"earning id must be an integer, got {type(earning_id).__name__}",
                                           field="id")
            logger.warning(
                "Некорректный id начисления",
                event=event,
                error=str(error),
                error_type=type(error).__name__
            )
            raise error

    @staticmethod
    def _fail(exc: Exception, message: str, event: str, amount: Optional[int] = None,
              **context) -> EarningsError:
        """Логирует ошибку БД и возвращает исключение для raise"""
        error = _translate_db_error(exc, amount=amount)
        logger.error(
            message,
            event=event,
            error=str(exc),
            error_type=type(exc).__name__,
            raised=type(error).__name__,
            **context
        )
        return error

    def _build_filter(self, earning_filter: Optional[EarningFilter], **kwargs) -> EarningFilter:
        if earning_filter is not None:
            if kwargs:
                earning_filter = self._validate(
                    EarningFilter,
                    "db_earning_filter_invalid",
                    **{**earning_filter.model_dump(), **kwargs}
                )
        else:
            kwargs = {key: value for key, value in kwargs.items() if value is not None}
            kwargs.setdefault("limit", config.settings.default_query_limit)
            earning_filter = self._validate(EarningFilter, "db_earning_filter_invalid", **kwargs)

        max_limit = config.settings.max_query_limit
        if earning_filter.limit > max_limit:
            earning_filter = earning_filter.model_copy(update={"limit": max_limit})
        return earning_filter

    @staticmethod
    def _where(stmt, earning_filter: EarningFilter, with_cursor: bool = True):
        if earning_filter.miner_id is not None:
            stmt = stmt.where(Earning.miner_id == earning_filter.miner_id)
        if earning_filter.pool_id is not None:
            stmt = stmt.where(Earning.pool_id == earning_filter.pool_id)
        if earning_filter.challenge_id is not None:
            stmt = stmt.where(Earning.challenge_id == earning_filter.challenge_id)
        if with_cursor and earning_filter.after_id is not None:
            stmt = stmt.where(Earning.id > earning_filter.after_id)
        return stmt

    # ========== СОЗДАНИЕ ==========

    async def create(
            self,
            miner_id: int,
            pool_id: int,
            challenge_id: int,
            amount: Optional[int] = None
    ) -> Earning:
        """Создание начисления, amount по умолчанию 0"""
        data = self._validate(
            EarningCreate,
            "db_create_earning_invalid",
            miner_id=miner_id,
            pool_id=pool_id,
            challenge_id=challenge_id,
            amount=DEFAULT_AMOUNT if amount is None else amount
        )

        now = utcnow()
        earning = Earning(**data.model_dump(), created_at=now, updated_at=now)

        try:
            async with self._session_factory() as session:
                session.add(earning)
                await session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            raise self._fail(
                e,
                "Ошибка создания начисления",
                "db_create_earning_error",
                amount=data.amount,
                miner_id=data.miner_id,
                pool_id=data.pool_id,
                challenge_id=data.challenge_id
            ) from e

        logger.earning_created(
            earning_id=earning.id,
            miner_id=earning.miner_id,
            pool_id=earning.pool_id,
            challenge_id=earning.challenge_id,
            amount=earning.amount
        )
        return earning

    async def create_batch(self, items: Iterable[Union[EarningCreate, dict]]) -> List[Earning]:
        """Пакетная вставка начислений в одной транзакции (все или ничего)"""
        validated: List[EarningCreate] = []
        for item in items:
            if isinstance(item, EarningCreate):
                validated.append(item)
                continue
            data = dict(item)
            if data.get("amount", DEFAULT_AMOUNT) is None:
                data["amount"] = DEFAULT_AMOUNT
            validated.append(self._validate(EarningCreate, "db_create_earnings_batch_invalid", **data))

        if not validated:
            logger.debug("Пустой пакет начислений", event="db_create_earnings_batch_empty")
            return []

        now = utcnow()
        earnings = [Earning(**data.model_dump(), created_at=now, updated_at=now) for data in validated]

        try:
            async with self._session_factory() as session:
                session.add_all(earnings)
                await session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            raise self._fail(
                e,
                "Ошибка пакетной вставки начислений",
                "db_create_earnings_batch_error",
                amount=max(earning.amount for earning in earnings),
                batch_size=len(earnings)
            ) from e

        logger.earnings_batch_created(
            count=len(earnings),
            total_amount=sum(earning.amount for earning in earnings),
            first_id=earnings[0].id,
            last_id=earnings[-1].id
        )
        return earnings

    # ========== ЧТЕНИЕ ==========

    async def get(self, earning_id: int) -> Optional[Earning]:
        """Получить начисление по id"""
        self._check_id(earning_id, "db_get_earning_invalid")
        if not _is_valid_id(earning_id):
            return None

        try:
            async with self._session_factory() as session:
                earning = await session.get(Earning, earning_id)
        except SQLAlchemyError as e:
            raise self._fail(e, "Ошибка получения начисления", "db_get_earning_error",
                             earning_id=earning_id) from e

        logger.debug(
            "Получение начисления по id",
            event="db_get_earning",
            earning_id=earning_id,
            found=earning is not None
        )
        return earning

    async def get_or_raise(self, earning_id: int) -> Earning:
        """Получить начисление по id или EarningNotFoundError"""
        earning = await self.get(earning_id)
        if earning is None:
            logger.warning("Начисление не найдено", event="db_earning_not_found", earning_id=earning_id)
            raise EarningNotFoundError(earning_id)
        return earning

    async def query(self, earning_filter: Optional[EarningFilter] = None, **kwargs) -> List[Earning]:
        """Выборка по miner_id / pool_id / challenge_id, порядок по возрастанию id"""
        earning_filter = self._build_filter(earning_filter, **kwargs)

        stmt = (
            self._where(select(Earning), earning_filter)
            .order_by(Earning.id.asc())
            .offset(earning_filter.skip)
            .limit(earning_filter.limit)
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                earnings = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._fail(e, "Ошибка выборки начислений", "db_query_earnings_error",
                             **earning_filter.model_dump(exclude_none=True)) from e

        logger.debug(
            "Выборка начислений",
            event="db_query_earnings",
            returned=len(earnings),
            **earning_filter.model_dump(exclude_none=True)
        )
        return earnings

    async def query_page(self, earning_filter: Optional[EarningFilter] = None, **kwargs) -> EarningPage:
        """Страница начислений с информацией о пагинации"""
        earning_filter = self._build_filter(earning_filter, **kwargs)

        earnings = await self.query(earning_filter)
        # Для keyset страницы total считается от курсора, иначе has_next не сходится с items
        total = await self.count(earning_filter, with_cursor=True)

        return EarningPage(
            items=[EarningResponse.model_validate(earning) for earning in earnings],
            pagination=calculate_pagination_info(
                earning_filter.skip, earning_filter.limit, total, len(earnings)
            )
        )

    # ========== АГРЕГАТЫ ==========

    async def count(
            self,
            earning_filter: Optional[EarningFilter] = None,
            with_cursor: bool = False,
            **kwargs
    ) -> int:
        """Количество начислений под фильтром (skip/limit не учитываются, after_id только с with_cursor)"""
        earning_filter = self._build_filter(earning_filter, **kwargs)
        stmt = self._where(select(func.count(Earning.id)), earning_filter, with_cursor=with_cursor)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar() or 0)
        except SQLAlchemyError as e:
            raise self._fail(e, "Ошибка подсчета начислений", "db_count_earnings_error") from e

    async def total_amount(self, earning_filter: Optional[EarningFilter] = None, **kwargs) -> int:
        """Сумма amount под фильтром, 0 если записей нет"""
        earning_filter = self._build_filter(earning_filter, **kwargs)
        stmt = self._where(
            select(func.coalesce(func.sum(Earning.amount), 0)), earning_filter, with_cursor=False
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                total = result.scalar()
        except SQLAlchemyError as e:
            raise self._fail(e, "Ошибка расчета суммы начислений", "db_total_amount_error") from e

        return int(total or 0)

    async def totals_by_miner(
            self,
            pool_id: Optional[int] = None,
            challenge_id: Optional[int] = None,
            miner_id: Optional[int] = None
    ) -> Dict[int, int]:
        """Суммы начислений по майнерам: {miner_id: total}"""
        earning_filter = self._build_filter(None, pool_id=pool_id, challenge_id=challenge_id,
                                            miner_id=miner_id)
        stmt = (
            self._where(select(Earning.miner_id, func.sum(Earning.amount)), earning_filter, with_cursor=False)
            .group_by(Earning.miner_id)
            .order_by(Earning.miner_id)
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            raise self._fail(e, "Ошибка расчета сумм по майнерам", "db_totals_by_miner_error",
                             pool_id=pool_id, challenge_id=challenge_id, miner_id=miner_id) from e

        totals = {row_miner_id: int(total or 0) for row_miner_id, total in rows}
        logger.debug(
            "Суммы начислений по майнерам",
            event="db_totals_by_miner",
            pool_id=pool_id,
            challenge_id=challenge_id,
            miner_id=miner_id,
            miners=len(totals)
        )
        return totals

    async def summarize(self, earning_filter: Optional[EarningFilter] = None, **kwargs) -> EarningTotals:
        """Сводка: количество, общая сумма и суммы по майнерам"""
        earning_filter = self._build_filter(earning_filter, **kwargs)
        by_miner = await self.totals_by_miner(
            pool_id=earning_filter.pool_id,
            challenge_id=earning_filter.challenge_id,
            miner_id=earning_filter.miner_id
        )

        return EarningTotals(
            count=await self.count(earning_filter),
            total_amount=await self.total_amount(earning_filter),
            by_miner=by_miner
        )

    # ========== ИЗМЕНЕНИЕ ==========

    async def update_amount(self, earning_id: int, amount: int) -> Earning:
        """Установить amount; updated_at сдвигается, created_at и id не меняются"""
        self._check_id(earning_id, "db_update_earning_invalid")
        data = self._validate(EarningUpdate, "db_update_earning_invalid", amount=amount)

        return await self._mutate_amount(
            earning_id,
            lambda old_amount: data.amount,
            "db_update_earning",
            "Ошибка обновления начисления"
        )

    async def add_amount(self, earning_id: int, delta: int) -> Earning:
        """Атомарно изменить amount на delta (под блокировкой строки)"""
        self._check_id(earning_id, "db_adjust_earning_invalid")
        data = self._validate(EarningAdjust, "db_adjust_earning_invalid", delta=delta)

        return await self._mutate_amount(
            earning_id,
            lambda old_amount: old_amount + data.delta,
            "db_adjust_earning",
            "Ошибка изменения суммы начисления"
        )

    async def _mutate_amount(
            self,
            earning_id: int,
            compute: Callable[[int], int],
            event: str,
            error_message: str
    ) -> Earning:
        if not _is_valid_id(earning_id):
            logger.warning("Начисление не найдено", event=f"{event}_not_found", earning_id=earning_id)
            raise EarningNotFoundError(earning_id)

        new_amount: Optional[int] = None
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Earning).where(Earning.id == earning_id).with_for_update()
                )
                earning = result.scalar_one_or_none()

                if earning is None:
                    logger.warning("Начисление не найдено", event=f"{event}_not_found", earning_id=earning_id)
                    raise EarningNotFoundError(earning_id)

                old_amount = earning.amount
                new_amount = compute(old_amount)
                if not UINT64_MIN <= new_amount <= UINT64_MAX:
                    logger.warning(
                        "Сумма начисления вне диапазона",
                        event=f"{event}_overflow",
                        earning_id=earning_id,
                        old_amount=old_amount,
                        new_amount=new_amount
                    )
                    raise AmountOverflowError(new_amount)

                earning.amount = new_amount
                earning.updated_at = next_timestamp(earning.updated_at)
                await session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            raise self._fail(e, error_message, f"{event}_error", amount=new_amount,
                             earning_id=earning_id) from e

        logger.earning_updated(
            earning_id=earning_id,
            old_amount=old_amount,
            new_amount=earning.amount,
            updated_at=earning.updated_at.isoformat()
        )
        return earning
