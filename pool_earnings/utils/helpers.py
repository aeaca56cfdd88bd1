from datetime import datetime, UTC, timedelta
from typing import Optional

from pool_earnings.utils.constants import TIMESTAMP_RESOLUTION_MICROSECONDS


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo (колонки TIMESTAMP хранятся naive)"""
    return datetime.now(UTC).replace(tzinfo=None)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """
    Новое значение updated_at, строго большее предыдущего

    Args:
        previous: Текущее значение updated_at записи

    Returns:
        utcnow(), либо previous + 1 мкс, если часы не ушли вперед
    """
    now = utcnow()
    if previous is None:
        return now

    if previous.tzinfo is not None:
        previous = previous.astimezone(UTC).replace(tzinfo=None)

    if now <= previous:
        return previous + timedelta(microseconds=TIMESTAMP_RESOLUTION_MICROSECONDS)
    return now


def calculate_pagination_info(skip: int, limit: int, total: int, current_count: int):
    """
    Рассчитывает информацию о пагинации

    Args:
        skip: Пропущено записей
        limit: Лимит на странице
        total: Всего записей
        current_count: Количество на текущей странице

    Returns:
        Словарь с информацией о пагинации
    """
    current_page = (skip // limit) + 1 if limit > 0 else 1
    total_pages = (total + limit - 1) // limit if limit > 0 else 1

    return {
        "skip": skip,
        "limit": limit,
        "total": total,
        "current_page": current_page,
        "total_pages": total_pages,
        "has_next": (skip + current_count) < total,
        "has_prev": skip > 0,
        "returned": current_count
    }
