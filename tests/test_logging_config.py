"""
Тесты конфигурации логирования
"""
import json
import logging
import pytest

from pool_earnings.utils.logging_config import (
    JSONFormatter,
    ColorFormatter,
    StructuredLogger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Сохраняем и восстанавливаем обработчики корневого логгера"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level

    yield root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("earnings", logging.INFO, __file__, 10, "Начисление создано: %s", (1,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Форматировщики"""

    def test_json_formatter_includes_extra(self):
        payload = json.loads(JSONFormatter().format(_record(event="earning_created", earning_id=1)))

        assert payload["message"] == "Начисление создано: 1"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "earnings"
        assert payload["event"] == "earning_created"
        assert payload["earning_id"] == 1
        assert "args" not in payload
        assert "msg" not in payload

    def test_json_formatter_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.LogRecord("earnings", logging.ERROR, __file__, 1, "fail", None, sys.exc_info())

        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in payload["exception"]

    def test_color_formatter(self):
        line = ColorFormatter('%(message)s').format(_record(event="earning_created"))

        assert "[earnings]" in line
        assert "Начисление создано: 1 (earning_created)" in line
        assert "INFO" in line


class TestStructuredLogger:
    """Структурированное логирование"""

    def test_context_passed_as_extra(self, caplog):
        logger = StructuredLogger("earnings.test")

        with caplog.at_level(logging.DEBUG, logger="earnings.test"):
            logger.warning("Сумма вне диапазона", event="overflow", earning_id=5)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.event == "overflow"
        assert record.earning_id == 5
        assert record.funcName == "test_context_passed_as_extra"

    def test_domain_helpers(self, caplog):
        logger = StructuredLogger("earnings.test")

        with caplog.at_level(logging.INFO, logger="earnings.test"):
            logger.earning_created(earning_id=1, miner_id=2, pool_id=3, challenge_id=4, amount=500)
            logger.earning_updated(earning_id=1, old_amount=500, new_amount=750)
            logger.earnings_batch_created(count=2, total_amount=10)

        events = [record.event for record in caplog.records]
        assert events == ["earning_created", "earning_updated", "earnings_batch_created"]
        assert caplog.records[0].amount == 500
        assert caplog.records[1].new_amount == 750


class TestSetupLogging:
    """Настройка обработчиков"""

    def test_creates_handlers_and_files(self, tmp_path, restore_root_logger):
        root = setup_logging(log_dir=tmp_path / "logs")

        assert len(root.handlers) == 3
        assert (tmp_path / "logs").is_dir()

        StructuredLogger("earnings").error("Ошибка", event="db_error")
        for handler in root.handlers:
            handler.flush()

        error_lines = (tmp_path / "logs" / "errors.log").read_text(encoding="utf-8").splitlines()
        assert json.loads(error_lines[-1])["event"] == "db_error"
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
