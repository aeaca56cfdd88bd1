from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional


class Settings(BaseSettings):
    # База данных
    db_driver: str = "postgresql+asyncpg"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "pool_db"
    db_user: str = "pool_admin"
    db_password: str
    database_url: Optional[str] = None  # Полный URL, перекрывает db_* поля
    db_echo: bool = False

    # Выборки начислений
    default_query_limit: int = 100
    max_query_limit: int = 1000

    # Логирование
    log_dir: str = "logs"
    log_file_name: str = "pool_earnings.log"
    log_json_console: bool = False

    # Разработка
    debug: bool = False

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def async_database_url(self) -> str:
        """URL для async движка приложения"""
        if self.database_url:
            return self.database_url
        return f"{self.db_driver}://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"


settings = Settings()
