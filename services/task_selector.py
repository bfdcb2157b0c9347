# services/task_selector.py
"""
Выбор задач дня из статических пулов.

Чистая синхронная функция: никаких обращений к хранилищу. Перемешивание
случайное при каждом вызове, воспроизводимость не требуется (для тестов можно
передать свой random.Random).
"""

import random
import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from core.constants import HARD_UNLOCK_DAY, MAGIC_UNLOCK_DAY, PLANNING_TASK_TEXT
from core.models import (
    CATEGORY_ROTATION, TIER_ORDER, SelectedTask, Tier, TierConfig,
    TaskCategory, ValidationError, normalize_text,
)
from core.task_pools import DEFAULT_POOLS, PoolTask, TaskPools

logger = logging.getLogger(__name__)

class TaskPoolSelector:
    """Балансированный выбор задач без повторов"""

    def __init__(self, pools: TaskPools = DEFAULT_POOLS, rng: Optional[random.Random] = None,
                 hard_unlock_day: int = HARD_UNLOCK_DAY, magic_unlock_day: int = MAGIC_UNLOCK_DAY):
        self.pools = pools
        self.rng = rng or random.Random()
        self.hard_unlock_day = hard_unlock_day
        self.magic_unlock_day = magic_unlock_day

    def select(self, tier_config: Union[TierConfig, Dict[str, Any]], day_number: int,
               hard_pool: Optional[Sequence[PoolTask]] = None) -> List[SelectedTask]:
        """
        Выбрать задачи на день.

        hard_pool заменяет статический пул сложных задач (личная библиотека
        пользователя). Результат упорядочен: easy, standard, hard
        (метазадача планирования первой), magic.
        """
        config = self._validate(tier_config, day_number)
        hard_candidates = tuple(self.pools.hard if hard_pool is None else hard_pool)

        with_planning = day_number >= self.hard_unlock_day and config.hard > 0
        generated_hard = config.hard - 1 if with_planning else config.hard

        selected: List[SelectedTask] = []
        selected += self._select_balanced(self.pools.easy, config.easy, Tier.EASY)
        selected += self._select_balanced(self.pools.standard, config.standard, Tier.STANDARD)
        selected += self._select_balanced(hard_candidates, generated_hard, Tier.HARD)

        unique, seen = self._deduplicate(selected)

        # Пустой пул сложных задач не создаёт спрос на добор
        target = config.easy + config.standard + (generated_hard if hard_candidates else 0)
        if len(unique) < target:
            self._backfill(unique, seen, target, hard_candidates)

        if with_planning and normalize_text(PLANNING_TASK_TEXT) not in seen:
            seen.add(normalize_text(PLANNING_TASK_TEXT))
            unique.insert(0, SelectedTask(PLANNING_TASK_TEXT, Tier.HARD, TaskCategory.MENTAL))

        if config.magic and day_number >= self.magic_unlock_day:
            magic = self._pick_magic(seen)
            if magic is not None:
                unique.append(magic)

        # Стабильная сортировка сохраняет метазадачу первой среди сложных
        unique.sort(key=lambda task: TIER_ORDER.index(task.tier))

        logger.debug(
            f"📋 День {day_number}: {config.easy}E + {config.standard}S + {config.hard}H"
            f"{' + 1M' if config.magic else ''} -> {len(unique)} из {config.requested_total} задач"
        )
        return unique

    @staticmethod
    def _validate(tier_config, day_number: int) -> TierConfig:
        if isinstance(tier_config, dict):
            tier_config = TierConfig.from_dict(tier_config)
        elif not isinstance(tier_config, TierConfig):
            raise ValidationError(f"Неверная конфигурация задач: {tier_config!r}")

        if isinstance(day_number, bool) or not isinstance(day_number, int) or day_number < 1:
            raise ValidationError(f"Номер дня должен быть положительным целым: {day_number!r}")

        return tier_config

    def _select_balanced(self, pool: Sequence[PoolTask], count: int, tier: Tier) -> List[SelectedTask]:
        """Round-robin по категориям, при нехватке - любая оставшаяся задача"""
        if count <= 0 or not pool:
            return []

        shuffled = list(pool)
        self.rng.shuffle(shuffled)

        used: Set[int] = set()
        picked: List[SelectedTask] = []

        for step in range(min(count, len(shuffled))):
            target = CATEGORY_ROTATION[step % len(CATEGORY_ROTATION)]
            index = next(
                (i for i, task in enumerate(shuffled) if i not in used and task.category is target),
                None,
            )
            if index is None:
                index = next(i for i, _ in enumerate(shuffled) if i not in used)

            used.add(index)
            candidate = shuffled[index]
            picked.append(self._to_selected(candidate, tier))

        return picked

    @staticmethod
    def _to_selected(candidate: PoolTask, tier: Tier) -> SelectedTask:
        return SelectedTask(
            text=candidate.text,
            tier=tier,
            category=candidate.category,
            is_custom=candidate.custom_task_id is not None,
            custom_task_id=candidate.custom_task_id,
        )

    @staticmethod
    def _deduplicate(tasks: List[SelectedTask]):
        unique: List[SelectedTask] = []
        seen: Set[str] = set()
        for task in tasks:
            if task.normalized in seen:
                continue
            seen.add(task.normalized)
            unique.append(task)
        return unique, seen

    def _backfill(self, unique: List[SelectedTask], seen: Set[str], target: int,
                  hard_candidates: Sequence[PoolTask]) -> None:
        """Добор из объединения пулов (в порядке пулов) до нужного количества"""
        union = (
            [(task, Tier.EASY) for task in self.pools.easy]
            + [(task, Tier.STANDARD) for task in self.pools.standard]
            + [(task, Tier.HARD) for task in hard_candidates]
        )
        for candidate, tier in union:
            if len(unique) >= target:
                break
            normalized = normalize_text(candidate.text)
            if normalized in seen:
                continue
            seen.add(normalized)
            unique.append(self._to_selected(candidate, tier))

    def _pick_magic(self, seen: Set[str]) -> Optional[SelectedTask]:
        candidates = [task for task in self.pools.magic if normalize_text(task.text) not in seen]
        if not candidates:
            return None
        choice = self.rng.choice(candidates)
        seen.add(normalize_text(choice.text))
        return self._to_selected(choice, Tier.MAGIC)
