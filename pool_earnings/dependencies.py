"""
Файл для хранения глобальных зависимостей и предотвращения циклических импортов.
"""
from typing import Optional, Dict

from sqlalchemy.ext.asyncio import async_sessionmaker

from pool_earnings.services.earnings_service import EarningsService


class DependencyContainer:
    """Ленивый контейнер сервисов"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory
        self._earnings_service: Optional[EarningsService] = None

    @property
    def earnings_service(self) -> EarningsService:
        # Создается при первом обращении
        if self._earnings_service is None:
            self._earnings_service = EarningsService(session_factory=self._session_factory)
        return self._earnings_service

    def get_stats(self) -> Dict[str, bool]:
        return {
            "earnings_service": self._earnings_service is not None,
        }


container = DependencyContainer()


def get_earnings_service() -> EarningsService:
    return container.earnings_service


__all__ = [
    "DependencyContainer",
    "container",
    "get_earnings_service",
]
