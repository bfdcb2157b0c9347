# services/__init__.py

"""
Модуль сервисов FlowBot

Этот модуль собирает хранилище и сервисы бизнес-логики в нужном порядке.
"""

import logging
import random
from typing import Optional

from config import ProgramConfig
from core.database import BaseStore, create_store
from services.custom_task_service import CustomTaskService
from services.progression import ProgressionService
from services.task_selector import TaskPoolSelector
from services.task_service import TaskService
from services.user_service import UserService
from utils.ttl_cache import TTLCache, MemoryTTLCache, create_ttl_cache

logger = logging.getLogger(__name__)

class ServiceManager:
    """
    Менеджер для управления всеми сервисами бота

    Обеспечивает:
    - Инициализацию сервисов в порядке зависимостей
    - Корректное закрытие хранилища и кэша
    """

    def __init__(self, store: BaseStore, tz_name: Optional[str] = None,
                 program: Optional[ProgramConfig] = None,
                 cache: Optional[TTLCache] = None, rng: Optional[random.Random] = None):
        self.store = store
        self.tz_name = tz_name
        self.cache = cache or MemoryTTLCache()

        program = program or ProgramConfig()

        # 1. Сервисы данных
        self.task_service = TaskService(store, tz_name)
        self.user_service = UserService(store, program.default_morning_hour, program.default_evening_hour)
        self.custom_task_service = CustomTaskService(store, self.task_service, rng=rng)

        # 2. Прогресс (зависит от всех остальных)
        self.selector = TaskPoolSelector(
            rng=rng,
            hard_unlock_day=program.hard_unlock_day,
            magic_unlock_day=program.magic_unlock_day,
        )
        self.progression = ProgressionService(
            self.selector,
            self.task_service,
            self.custom_task_service,
            self.user_service,
            mode=program.level_advance_mode,
        )
        logger.info("✅ Все сервисы инициализированы успешно!")

    @classmethod
    def from_config(cls, config) -> "ServiceManager":
        """Сборка сервисов из BotConfig"""
        logger.info("🔧 Инициализация сервисов FlowBot...")
        store = create_store(
            config.store.backend,
            data_file=config.store.data_file,
            supabase_url=config.store.supabase_url,
            supabase_key=config.store.supabase_key,
        )
        return cls(
            store,
            tz_name=config.program.timezone,
            program=config.program,
            cache=create_ttl_cache(config.cache.redis_url),
        )

    async def close_services(self):
        """Закрытие всех сервисов"""
        logger.info("🛑 Закрытие сервисов...")
        await self.cache.close()
        await self.store.close()
        logger.info("✅ Все сервисы закрыты")

__all__ = [
    'ServiceManager',
    'TaskService',
    'UserService',
    'CustomTaskService',
    'ProgressionService',
    'TaskPoolSelector',
]
