from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from pool_earnings.utils.config import settings

# ========== 1. BASE ДЛЯ МОДЕЛЕЙ ==========
class Base(DeclarativeBase):
    """Единый Base для всех моделей и миграций"""
    pass

# ========== 2. ASYNC ДВИЖОК (для приложения и Alembic) ==========
ASYNC_DATABASE_URL = settings.async_database_url
async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=settings.db_echo)
AsyncSessionLocal = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

# ========== 3. СЕССИИ ==========
def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Фабрика сессий для произвольного движка (тесты, скрипты)"""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# ========== 4. ПОЛЕЗНЫЕ ФУНКЦИИ ==========
async def create_tables(engine: Optional[AsyncEngine] = None):
    """Создание таблиц по метаданным моделей (разработка, тесты)"""
    # Регистрируем модели в Base.metadata
    import pool_earnings.models  # noqa: F401

    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(engine: Optional[AsyncEngine] = None):
    """Удаление всех таблиц моделей"""
    import pool_earnings.models  # noqa: F401

    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
