# pool_earnings/utils/logging_config.py
"""
Конфигурация логирования для приложения
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
import json
from datetime import datetime, UTC
from typing import Dict, Any, Optional, Union

from pool_earnings.utils.config import settings

# Стандартные атрибуты LogRecord, которые не считаются контекстом
_RESERVED_RECORD_KEYS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Форматировщик логов в JSON"""

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        # Добавляем extra поля (event, earning_id, miner_id ...)
        for key, value in record.__dict__.items():
            if key not in log_record and key not in _RESERVED_RECORD_KEYS and not key.startswith('_'):
                log_record[key] = value

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """Цветной форматировщик для консоли"""

    COLORS = {
        'DEBUG': '\033[36m',  # Cyan
        'INFO': '\033[32m',  # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',  # Red
        'CRITICAL': '\033[41m',  # Red background
        'RESET': '\033[0m',  # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        log_time = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        message = super().format(record)

        # Событие выводим рядом с сообщением, если оно есть
        event = getattr(record, "event", None)
        if event:
            message = f"{message} ({event})"

        return f"{log_time} {color}{record.levelname:8s}{reset} [{record.name}] {message}"


def setup_logging(log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Настройка логирования для приложения

    Args:
        log_dir: Директория для файлов логов (по умолчанию settings.log_dir)

    Returns:
        Корневой логгер
    """
    log_path = Path(log_dir if log_dir is not None else settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if settings.debug else logging.INFO

    logger = logging.getLogger()
    logger.setLevel(level)

    # Удаляем существующие обработчики
    logger.handlers.clear()

    # Консольный обработчик
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if settings.log_json_console:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ColorFormatter('%(message)s'))
    logger.addHandler(console_handler)

    # Файловый обработчик (ротация по размеру)
    file_handler = RotatingFileHandler(
        filename=log_path / settings.log_file_name,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(JSONFormatter())
    logger.addHandler(file_handler)

    # Обработчик ошибок (отдельный файл)
    error_handler = RotatingFileHandler(
        filename=log_path / "errors.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.WARNING)
    error_handler.setFormatter(JSONFormatter())
    logger.addHandler(error_handler)

    # Настраиваем логи для внешних библиотек
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logger.info("Логирование настроено")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Получение логгера с заданным именем

    Args:
        name: Имя логгера

    Returns:
        Настроенный логгер
    """
    return logging.getLogger(name)


class StructuredLogger:
    """
    Логгер для структурированного логирования
    """

    _LEVELS = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    def __init__(self, name: str):
        self.logger = get_logger(name)

    def _log_with_context(self, level: str, msg: str, **kwargs):
        """Логирование с дополнительным контекстом"""
        extra = kwargs.copy()
        # stacklevel=3: вызывающий код -> info()/error() -> _log_with_context
        self.logger.log(self._LEVELS[level], msg, extra=extra, stacklevel=3)

    def info(self, msg: str, **kwargs):
        """Логирование уровня INFO"""
        self._log_with_context("INFO", msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        """Логирование уровня DEBUG"""
        self._log_with_context("DEBUG", msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        """Логирование уровня WARNING"""
        self._log_with_context("WARNING", msg, **kwargs)

    def error(self, msg: str, **kwargs):
        """Логирование уровня ERROR"""
        self._log_with_context("ERROR", msg, **kwargs)

    def critical(self, msg: str, **kwargs):
        """Логирование уровня CRITICAL"""
        self._log_with_context("CRITICAL", msg, **kwargs)

    def earning_created(self, earning_id: int, miner_id: int, pool_id: int, challenge_id: int,
                        amount: int, **kwargs):
        """Логирование создания начисления"""
        self.info(f"Начисление создано: {earning_id}",
                  event="earning_created",
                  earning_id=earning_id,
                  miner_id=miner_id,
                  pool_id=pool_id,
                  challenge_id=challenge_id,
                  amount=amount,
                  **kwargs)

    def earning_updated(self, earning_id: int, old_amount: int, new_amount: int, **kwargs):
        """Логирование изменения суммы начисления"""
        self.info(f"Начисление обновлено: {earning_id}",
                  event="earning_updated",
                  earning_id=earning_id,
                  old_amount=old_amount,
                  new_amount=new_amount,
                  **kwargs)

    def earnings_batch_created(self, count: int, total_amount: int, **kwargs):
        """Логирование пакетной вставки начислений"""
        self.info(f"Пакет начислений сохранен: {count} шт.",
                  event="earnings_batch_created",
                  count=count,
                  total_amount=total_amount,
                  **kwargs)
