"""
Инициализация моделей - избегаем циклических импортов
"""
from pool_earnings.models.database import Base
from pool_earnings.models.earning import Earning

__all__ = ['Base', 'Earning']
