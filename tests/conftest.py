"""
Конфигурация для тестов
"""
import pytest
import pytest_asyncio
import sys
import os
from unittest.mock import Mock

# Добавляем корень проекта в sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings создаются при импорте, поэтому окружение задаем заранее
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from sqlalchemy.ext.asyncio import create_async_engine

from pool_earnings.models.database import create_tables, create_session_factory
from pool_earnings.services.earnings_service import EarningsService


@pytest.fixture
def mock_settings():
    """Mock настроек для тестов"""
    import pool_earnings.utils.config as config_module

    # Сохраняем оригинальный settings
    original_settings = config_module.settings

    mock_settings = Mock()
    mock_settings.db_password = "test_password"
    mock_settings.database_url = "sqlite+aiosqlite://"
    mock_settings.default_query_limit = 100
    mock_settings.max_query_limit = 1000
    mock_settings.debug = False
    mock_settings.log_file_name = "pool_earnings.log"
    mock_settings.log_json_console = False

    config_module.settings = mock_settings

    yield mock_settings

    # Восстанавливаем оригинальные settings
    config_module.settings = original_settings


@pytest.fixture
def db_path(tmp_path):
    """Путь к временной SQLite базе"""
    return tmp_path / "earnings.db"


@pytest_asyncio.fixture
async def engine(db_path):
    """Async движок на временной SQLite базе с созданными таблицами"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def earnings_service(session_factory):
    """Сервис начислений поверх временной базы"""
    return EarningsService(session_factory=session_factory)


@pytest_asyncio.fixture
async def seeded_service(earnings_service):
    """Сервис с набором начислений для выборок"""
    rows = [
        (1, 1, 1, 100),
        (1, 1, 2, 200),
        (2, 1, 1, 300),
        (2, 2, 1, 400),
        (3, 1, 1, 0),
        (1, 2, 2, 50),
    ]
    for miner_id, pool_id, challenge_id, amount in rows:
        await earnings_service.create(miner_id, pool_id, challenge_id, amount)
    return earnings_service
