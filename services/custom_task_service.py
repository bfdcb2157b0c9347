# services/custom_task_service.py

import random
import logging
from typing import List, Optional

from core.constants import CUSTOM_TASKS_TABLE
from core.database import BaseStore, NotFoundError
from core.models import CustomTask, TaskCategory, TaskEntry, Tier, validate_enum_value
from core.task_pools import PoolTask, detect_category
from services.task_service import TaskService

logger = logging.getLogger(__name__)

class CustomTaskService:
    """Личная библиотека задач пользователя (коллекция custom_tasks)"""

    def __init__(self, store: BaseStore, task_service: TaskService,
                 rng: Optional[random.Random] = None):
        self.store = store
        self.task_service = task_service
        self.rng = rng or random.Random()

    async def create(self, user_id: int, title: str, category=None,
                     difficulty=Tier.HARD) -> CustomTask:
        """Создать шаблон; без категории она определяется по тексту"""
        task = CustomTask(
            user_id=user_id,
            title=title,
            category=category if category is not None else detect_category(title),
            difficulty=difficulty,
        )
        rows = await self.store.insert(CUSTOM_TASKS_TABLE, [task.to_row()])
        logger.info(f"📚 Задача добавлена в библиотеку пользователя {user_id}")
        return CustomTask.from_row(rows[0])

    async def list_tasks(self, user_id: int, difficulty=None) -> List[CustomTask]:
        filters = {"user_id": user_id, "is_active": True}
        if difficulty is not None:
            filters["difficulty"] = validate_enum_value(difficulty, Tier, "difficulty").value
        rows = await self.store.select(CUSTOM_TASKS_TABLE, filters, order_by="id")
        return [CustomTask.from_row(row) for row in rows]

    async def get(self, custom_task_id: int) -> CustomTask:
        row = await self.store.select_one(CUSTOM_TASKS_TABLE, {"id": custom_task_id})
        if row is None or not row.get("is_active", True):
            raise NotFoundError(f"Шаблон задачи {custom_task_id} не найден")
        return CustomTask.from_row(row)

    async def remove(self, user_id: int, custom_task_id: int) -> None:
        """Мягкое удаление: задачи, уже созданные из шаблона, остаются"""
        updated = await self.store.update(
            CUSTOM_TASKS_TABLE, {"id": custom_task_id, "user_id": user_id}, {"is_active": False}
        )
        if not updated:
            raise NotFoundError(f"Шаблон задачи {custom_task_id} не найден")

    async def random_tasks(self, user_id: int, difficulty=Tier.HARD, count: int = 1) -> List[CustomTask]:
        tasks = await self.list_tasks(user_id, difficulty)
        return self.rng.sample(tasks, min(count, len(tasks)))

    async def hard_pool(self, user_id: int) -> List[PoolTask]:
        """Сложные шаблоны пользователя в виде кандидатов для выбора задач дня"""
        return [
            PoolTask(task.title, validate_enum_value(task.category, TaskCategory), task.id)
            for task in await self.list_tasks(user_id, Tier.HARD)
        ]

    async def add_to_day(self, user_id: int, custom_task_id: int, day: Optional[str] = None) -> TaskEntry:
        template = await self.get(custom_task_id)
        if template.user_id != user_id:
            raise NotFoundError(f"Шаблон задачи {custom_task_id} не найден")

        return await self.task_service.add_task(
            user_id,
            day or self.task_service.today(),
            template.title,
            template.difficulty,
            custom_task_id=template.id,
        )
