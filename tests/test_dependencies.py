from unittest.mock import Mock

from pool_earnings.dependencies import DependencyContainer, get_earnings_service
from pool_earnings.services.earnings_service import EarningsService


def test_earnings_service_in_container():
    """Тест что EarningsService создается лениво"""
    session_factory = Mock()
    container = DependencyContainer(session_factory=session_factory)

    # Должен создаться лениво
    assert container._earnings_service is None
    assert container.get_stats()["earnings_service"] is False

    # При первом обращении создается
    service = container.earnings_service
    assert isinstance(service, EarningsService)
    assert service._session_factory is session_factory
    assert container.earnings_service is service
    assert container.get_stats()["earnings_service"] is True


def test_global_container():
    """Глобальный контейнер отдает один и тот же сервис"""
    assert get_earnings_service() is get_earnings_service()
