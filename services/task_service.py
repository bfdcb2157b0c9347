# services/task_service.py

import random
import logging
from typing import Callable, List, Optional, Tuple

from core.constants import TASKS_TABLE, DAILY_STATS_TABLE, STATS_CAS_RETRIES
from core.database import BaseStore, NotFoundError, ConcurrentMutationError
from core.models import (
    DayStatistics, SelectedTask, TaskEntry, Tier,
    validate_enum_value, validate_iso_date, validate_text,
)
from utils.datetime_utils import today_str

logger = logging.getLogger(__name__)

class TaskService:
    """
    Задачи дня пользователя и статистика дня.

    Возможности:
    - Полная замена набора задач на дату (без слияния)
    - Отметка выполнения с атомарным переключением флага
    - Счётчики daily_stats через compare-and-set по колонке version
    - Переименование, смена уровня, удаление, добавление, перемешивание
    """

    def __init__(self, store: BaseStore, tz_name: Optional[str] = None,
                 cas_retries: int = STATS_CAS_RETRIES):
        self.store = store
        self.tz_name = tz_name
        self.cas_retries = cas_retries

    def today(self) -> str:
        return today_str(self.tz_name)

    # ===== ЧТЕНИЕ =====

    async def get_tasks_for_date(self, user_id: int, day: str) -> List[TaskEntry]:
        rows = await self.store.select(
            TASKS_TABLE, {"user_id": user_id, "date": validate_iso_date(day)}, order_by="position"
        )
        return [TaskEntry.from_row(row) for row in rows]

    async def get_today_tasks(self, user_id: int) -> List[TaskEntry]:
        return await self.get_tasks_for_date(user_id, self.today())

    async def has_tasks_for_date(self, user_id: int, day: str) -> bool:
        return bool(await self.get_tasks_for_date(user_id, day))

    async def get_task(self, task_id: int) -> TaskEntry:
        row = await self.store.select_one(TASKS_TABLE, {"id": task_id})
        if row is None:
            raise NotFoundError(f"Задача {task_id} не найдена")
        return TaskEntry.from_row(row)

    # ===== НАБОР ЗАДАЧ ДНЯ =====

    async def replace_day_batch(self, user_id: int, day: str,
                                selected: List[SelectedTask]) -> List[TaskEntry]:
        """Заменить все задачи пользователя на дату новым набором и обнулить статистику"""
        day = validate_iso_date(day)
        rows = [
            TaskEntry(
                user_id=user_id,
                date=day,
                task_text=task.text,
                task_type=task.tier,
                position=position,
                is_custom=task.is_custom,
                custom_task_id=task.custom_task_id,
            ).to_row()
            for position, task in enumerate(selected, start=1)
        ]

        stored = await self.store.replace(TASKS_TABLE, {"user_id": user_id, "date": day}, rows)
        await self.init_daily_stats(user_id, day, len(stored))

        logger.info(f"📝 Сохранено {len(stored)} задач на {day} для пользователя {user_id}")
        return sorted((TaskEntry.from_row(row) for row in stored), key=lambda t: t.position)

    async def delete_all_user_tasks(self, user_id: int) -> int:
        removed = await self.store.delete(TASKS_TABLE, {"user_id": user_id})
        await self.store.delete(DAILY_STATS_TABLE, {"user_id": user_id})
        logger.info(f"🗑 Удалены все задачи пользователя {user_id} ({removed})")
        return removed

    # ===== СТАТИСТИКА ДНЯ =====

    async def get_daily_stats(self, user_id: int, day: str) -> DayStatistics:
        day = validate_iso_date(day)
        row = await self.store.select_one(DAILY_STATS_TABLE, {"user_id": user_id, "date": day})
        if row is None:
            return DayStatistics(user_id=user_id, date=day)
        return DayStatistics.from_row(row)

    async def init_daily_stats(self, user_id: int, day: str, total_tasks: int) -> DayStatistics:
        """Нулевая статистика для нового набора задач"""
        fresh = DayStatistics(user_id=user_id, date=day, total_tasks=total_tasks)
        key = {"user_id": user_id, "date": day}

        existing = await self.store.select_one(DAILY_STATS_TABLE, key)
        if existing is None:
            rows = await self.store.insert(DAILY_STATS_TABLE, [fresh.to_row()])
            return DayStatistics.from_row(rows[0])

        values = fresh.counters()
        # Завершённый день остаётся завершённым и после пересоздания задач
        values["day_completed"] = bool(existing.get("day_completed"))
        values["version"] = (existing.get("version") or 0) + 1
        rows = await self.store.update(DAILY_STATS_TABLE, key, values)
        return DayStatistics.from_row(rows[0])

    async def mutate_daily_stats(self, user_id: int, day: str,
                                 mutator: Callable[[DayStatistics], None]) -> DayStatistics:
        """
        Read-modify-write статистики с проверкой версии.

        При конфликте перечитывает и повторяет; после исчерпания попыток
        выбрасывает ConcurrentMutationError.
        """
        key = {"user_id": user_id, "date": day}

        for attempt in range(1, self.cas_retries + 1):
            row = await self.store.select_one(DAILY_STATS_TABLE, key)
            if row is None:
                total = len(await self.get_tasks_for_date(user_id, day))
                stats = await self.init_daily_stats(user_id, day, total)
            else:
                stats = DayStatistics.from_row(row)

            mutator(stats)
            stats.recalculate()

            updated = await self.store.compare_and_set(
                DAILY_STATS_TABLE, key, "version", stats.version, stats.counters()
            )
            if updated is not None:
                return DayStatistics.from_row(updated)

            logger.warning(f"⚠️ Конфликт версии daily_stats {user_id}/{day}, попытка {attempt}")

        raise ConcurrentMutationError(f"daily_stats {user_id}/{day} изменяется параллельно")

    async def _sync_total(self, user_id: int, day: str,
                          extra: Optional[Callable[[DayStatistics], None]] = None) -> DayStatistics:
        total = len(await self.get_tasks_for_date(user_id, day))

        def mutator(stats: DayStatistics) -> None:
            if extra:
                extra(stats)
            stats.total_tasks = total

        return await self.mutate_daily_stats(user_id, day, mutator)

    # ===== ВЫПОЛНЕНИЕ =====

    async def set_completion(self, task_id: int, completed: bool) -> Tuple[TaskEntry, bool]:
        """
        Установить флаг выполнения.

        Возвращает (задача, изменилось_ли). Повторная отметка - no-op без
        повторного счёта.
        """
        task = await self.get_task(task_id)
        if task.completed == completed:
            return task, False

        if completed:
            task.mark_completed()
        else:
            task.mark_uncompleted()

        # Флаг переключается только если его никто не переключил раньше нас
        updated = await self.store.update(
            TASKS_TABLE,
            {"id": task_id, "completed": not completed},
            {"completed": task.completed, "completed_at": task.completed_at},
        )
        if not updated:
            return await self.get_task(task_id), False

        delta = 1 if completed else -1
        await self.mutate_daily_stats(task.user_id, task.date, lambda s: s.apply(task.task_type, delta))
        return TaskEntry.from_row(updated[0]), True

    # ===== РЕДАКТИРОВАНИЕ =====

    async def rename_task(self, task_id: int, new_text: str) -> TaskEntry:
        await self.get_task(task_id)
        text = validate_text(new_text, min_length=1, max_length=200, field_name="task_text")
        rows = await self.store.update(TASKS_TABLE, {"id": task_id}, {"task_text": text})
        return TaskEntry.from_row(rows[0])

    async def change_task_type(self, task_id: int, new_type) -> TaskEntry:
        task = await self.get_task(task_id)
        new_tier = validate_enum_value(new_type, Tier, "task_type")
        if new_tier is task.task_type:
            return task

        rows = await self.store.update(TASKS_TABLE, {"id": task_id}, {"task_type": new_tier.value})

        if task.completed:
            def move(stats: DayStatistics) -> None:
                stats.apply(task.task_type, -1)
                stats.apply(new_tier, 1)

            await self.mutate_daily_stats(task.user_id, task.date, move)

        return TaskEntry.from_row(rows[0])

    async def delete_task(self, task_id: int) -> None:
        task = await self.get_task(task_id)
        await self.store.delete(TASKS_TABLE, {"id": task_id})

        def forget(stats: DayStatistics) -> None:
            if task.completed:
                stats.apply(task.task_type, -1)

        await self._sync_total(task.user_id, task.date, forget)
        logger.info(f"🗑 Задача {task_id} удалена")

    async def add_task(self, user_id: int, day: str, text: str, tier=Tier.HARD,
                       custom_task_id: Optional[int] = None) -> TaskEntry:
        """Добавить задачу в конец списка дня"""
        day = validate_iso_date(day)
        existing = await self.get_tasks_for_date(user_id, day)
        entry = TaskEntry(
            user_id=user_id,
            date=day,
            task_text=validate_text(text, min_length=1, max_length=200, field_name="task_text"),
            task_type=tier,
            position=max((t.position for t in existing), default=0) + 1,
            is_custom=True,
            custom_task_id=custom_task_id,
        )
        rows = await self.store.insert(TASKS_TABLE, [entry.to_row()])
        await self._sync_total(user_id, day)
        return TaskEntry.from_row(rows[0])

    async def shuffle_tasks(self, user_id: int, day: str,
                            rng: Optional[random.Random] = None) -> List[TaskEntry]:
        tasks = await self.get_tasks_for_date(user_id, day)
        positions = list(range(1, len(tasks) + 1))
        (rng or random).shuffle(positions)

        for task, position in zip(tasks, positions):
            await self.store.update(TASKS_TABLE, {"id": task.id}, {"position": position})

        return await self.get_tasks_for_date(user_id, day)
