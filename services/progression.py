# services/progression.py
"""
Прогресс пользователя по программе.

Решает, когда и какие задачи генерировать на день, когда засчитывать стрик
и когда повышать level. Level растёт ровно в одном месте, которое выбирается
режимом LevelAdvanceMode:

- COMPLETION: после полного выполнения дня (checkDayCompletion), один раз на дату
- GENERATION: сразу после сохранения набора задач дня (generateDay)
"""

import logging
from typing import List, Optional, Tuple

from core.constants import STANDARD_UNLOCK_DAY, HARD_UNLOCK_DAY, MAGIC_UNLOCK_DAY
from core.models import (
    DayCompletionResult, DayStatistics, LevelAdvanceMode, TaskEntry, Tier,
    TierConfig, UserProgress, validate_iso_date,
)
from services.custom_task_service import CustomTaskService
from services.task_selector import TaskPoolSelector
from services.task_service import TaskService
from services.user_service import UserService
from utils.locks import KeyedLock

logger = logging.getLogger(__name__)

def tier_config_for_day(day_number: int, hard_unlock_day: int = HARD_UNLOCK_DAY,
                        magic_unlock_day: int = MAGIC_UNLOCK_DAY) -> TierConfig:
    """Каноническая таблица уровней задач по дню программы"""
    if day_number < STANDARD_UNLOCK_DAY:
        return TierConfig(easy=30, standard=0, hard=0)
    if day_number < hard_unlock_day:
        return TierConfig(easy=20, standard=10, hard=0)
    # 9 сложных = метазадача планирования + 8 из библиотеки пользователя
    return TierConfig(easy=10, standard=11, hard=9, magic=day_number >= magic_unlock_day)

class ProgressionService:
    """Генерация дня, выполнение задач, стрики и level"""

    def __init__(self, selector: TaskPoolSelector, task_service: TaskService,
                 custom_task_service: CustomTaskService, user_service: UserService,
                 mode: LevelAdvanceMode = LevelAdvanceMode.COMPLETION):
        self.selector = selector
        self.task_service = task_service
        self.custom_task_service = custom_task_service
        self.user_service = user_service
        self.mode = mode

        # Порядок захвата: сначала замок дня, потом замок пользователя
        self.day_locks = KeyedLock()
        self.user_locks = KeyedLock()

    def today(self) -> str:
        return self.task_service.today()

    def current_day(self, user: UserProgress) -> int:
        """День программы, задачи которого пользователь выполняет сейчас"""
        if self.mode is LevelAdvanceMode.GENERATION:
            return max(1, user.level - 1)
        return user.level

    def next_generation_day(self, user: UserProgress) -> int:
        return user.level

    # ===== ГЕНЕРАЦИЯ ДНЯ =====

    async def generate_day(self, user_id: int, day_number: Optional[int] = None,
                           date: Optional[str] = None, advance_level: bool = True) -> List[TaskEntry]:
        """
        Сгенерировать и сохранить набор задач на дату (по умолчанию сегодня).

        Старый набор на эту дату полностью заменяется. В режиме GENERATION
        после сохранения level увеличивается на 1 (если advance_level).
        """
        date = validate_iso_date(date or self.today())
        async with self.day_locks.hold((user_id, date)):
            return await self._generate_locked(user_id, day_number, date, advance_level)

    async def _generate_locked(self, user_id: int, day_number: Optional[int], date: str,
                               advance_level: bool) -> List[TaskEntry]:
        user = await self.user_service.get_user(user_id)
        if day_number is None:
            day_number = self.next_generation_day(user)

        config = tier_config_for_day(day_number, self.selector.hard_unlock_day, self.selector.magic_unlock_day)
        hard_pool = await self.custom_task_service.hard_pool(user_id)
        selected = self.selector.select(config, day_number, hard_pool=hard_pool)

        tasks = await self.task_service.replace_day_batch(user_id, date, selected)
        logger.info(f"🎲 День {day_number} для {user_id}: {len(tasks)} задач на {date}")

        if advance_level and self.mode is LevelAdvanceMode.GENERATION:
            await self._advance_level(user_id)

        return tasks

    async def regenerate_day(self, user_id: int) -> List[TaskEntry]:
        """Пересоздать задачи на сегодня для текущего дня, не повышая level"""
        user = await self.user_service.get_user(user_id)
        return await self.generate_day(user_id, self.current_day(user), advance_level=False)

    async def get_or_generate_today(self, user_id: int) -> Tuple[List[TaskEntry], bool]:
        """
        Задачи на сегодня; если набора ещё нет - генерирует. Возвращает (задачи, создан_ли).

        Задачи, добавленные пользователем до генерации, набором не считаются:
        они переносятся в конец сгенерированного списка.
        """
        date = self.today()
        async with self.day_locks.hold((user_id, date)):
            existing = await self.task_service.get_tasks_for_date(user_id, date)
            if any(not task.is_custom for task in existing):
                return existing, False

            tasks = await self._generate_locked(user_id, None, date, True)
            if existing:
                tasks += await self._carry_over(user_id, date, existing)
            return tasks, True

    async def _carry_over(self, user_id: int, date: str, authored: List[TaskEntry]) -> List[TaskEntry]:
        carried = []
        for task in authored:
            entry = await self.task_service.add_task(
                user_id, date, task.task_text, task.task_type, custom_task_id=task.custom_task_id
            )
            if task.completed:
                entry, _ = await self.task_service.set_completion(entry.id, True)
            carried.append(entry)

        logger.info(f"📎 Перенесено {len(carried)} своих задач пользователя {user_id} на {date}")
        return carried

    # ===== ВЫПОЛНЕНИЕ ЗАДАЧ =====

    async def record_completion(self, task_id: int) -> TaskEntry:
        return await self._set_completion(task_id, True)

    async def record_uncompletion(self, task_id: int) -> TaskEntry:
        return await self._set_completion(task_id, False)

    async def toggle_task(self, task_id: int) -> TaskEntry:
        task = await self.task_service.get_task(task_id)
        return await self._set_completion(task_id, not task.completed)

    async def _set_completion(self, task_id: int, completed: bool) -> TaskEntry:
        task = await self.task_service.get_task(task_id)
        async with self.day_locks.hold((task.user_id, task.date)):
            entry, changed = await self.task_service.set_completion(task_id, completed)

        if changed:
            logger.debug(f"{'✅' if completed else '↩️'} Задача {task_id} пользователя {task.user_id}")
        return entry

    # ===== ЗАВЕРШЕНИЕ ДНЯ =====

    async def check_day_completion(self, user_id: int, date: Optional[str] = None) -> DayCompletionResult:
        """
        Проверить, выполнены ли все задачи дня (magic не учитывается).

        При первом полном выполнении: засчитывается стрик, затем (в режиме
        COMPLETION) растёт level. Повторный вызов для того же дня ничего не меняет.
        """
        date = validate_iso_date(date or self.today())
        async with self.day_locks.hold((user_id, date)):
            tasks = await self.task_service.get_tasks_for_date(user_id, date)
            gating = [task for task in tasks if task.task_type is not Tier.MAGIC]
            user = await self.user_service.get_user(user_id)

            if not gating or not all(task.completed for task in gating):
                return DayCompletionResult(completed=False, streak_credited=False, new_level=user.level)

            stats = await self.task_service.get_daily_stats(user_id, date)
            if stats.day_completed:
                return DayCompletionResult(completed=True, streak_credited=False, new_level=user.level)

            async with self.user_locks.hold(user_id):
                streak = await self.user_service.get_streak(user_id)
                credited = streak.credit(date)
                if credited:
                    await self.user_service.save_streak(streak)

                # Сначала флаг дня, потом level
                await self.task_service.mutate_daily_stats(user_id, date, _mark_day_completed)

                new_level = user.level
                if self.mode is LevelAdvanceMode.COMPLETION:
                    new_level = await self._advance_level_locked(user_id)

        logger.info(
            f"🏁 День {date} завершён пользователем {user_id}: "
            f"стрик {streak.current_streak}, level {new_level}"
        )
        return DayCompletionResult(completed=True, streak_credited=credited, new_level=new_level)

    async def _advance_level(self, user_id: int) -> int:
        async with self.user_locks.hold(user_id):
            return await self._advance_level_locked(user_id)

    async def _advance_level_locked(self, user_id: int) -> int:
        user = await self.user_service.get_user(user_id)
        updated = await self.user_service.update_user(user_id, level=user.level + 1)
        return updated.level

    # ===== СБРОС И СТАТИСТИКА =====

    async def reset_progress(self, user_id: int) -> None:
        """Необратимый сброс: level 1, онбординг заново, задачи и стрик удалены"""
        async with self.user_locks.hold(user_id):
            await self.user_service.get_user(user_id)
            await self.task_service.delete_all_user_tasks(user_id)
            await self.user_service.update_user(
                user_id,
                level=1,
                onboarding_completed=False,
                current_streak=0,
                longest_streak=0,
            )
            await self.user_service.recreate_streak(user_id)

        logger.warning(f"♻️ Прогресс пользователя {user_id} сброшен")

    async def get_daily_stats(self, user_id: int, date: Optional[str] = None) -> DayStatistics:
        return await self.task_service.get_daily_stats(user_id, date or self.today())

def _mark_day_completed(stats: DayStatistics) -> None:
    stats.day_completed = True
