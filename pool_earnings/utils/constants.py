"""
Константы для всего приложения
"""

# ========== ЧИСЛОВЫЕ ГРАНИЦЫ СХЕМЫ ==========
# INT (знаковый 32-битный) для id, miner_id, pool_id, challenge_id
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# BIGINT UNSIGNED для amount
UINT64_MIN = 0
UINT64_MAX = 2 ** 64 - 1

# Значение amount по умолчанию
DEFAULT_AMOUNT = 0

# ========== ТАБЛИЦЫ ==========
EARNINGS_TABLE = "earnings"

# ========== БАЗА ДАННЫХ ==========
DEFAULT_PAGINATION_LIMIT = 100
MAX_PAGINATION_LIMIT = 1000

# Минимальный шаг updated_at при обновлении записи
TIMESTAMP_RESOLUTION_MICROSECONDS = 1
