#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FlowBot - Core Data Models
Модели данных программы с валидацией и типизацией
"""

import math
import logging
from datetime import datetime, date
from typing import Dict, Optional, Any, Union
from dataclasses import dataclass, field, fields
from enum import Enum

from core.constants import (
    EASY_WEIGHT, STANDARD_WEIGHT, HARD_WEIGHT, MAGIC_BONUS,
    DEFAULT_MORNING_HOUR, DEFAULT_EVENING_HOUR,
)

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class FlowBotError(Exception):
    """Базовое исключение FlowBot"""
    pass

class ValidationError(FlowBotError):
    """Ошибка валидации данных"""
    pass

# ===== ENUMS =====

class Tier(Enum):
    """Уровни сложности задач"""
    EASY = "easy"
    STANDARD = "standard"
    HARD = "hard"
    MAGIC = "magic"

    @property
    def weight(self) -> int:
        """Вес выполненной задачи в productivity_index (magic считается отдельно)"""
        return {
            Tier.EASY: EASY_WEIGHT,
            Tier.STANDARD: STANDARD_WEIGHT,
            Tier.HARD: HARD_WEIGHT,
        }.get(self, 0)

TIER_ORDER = (Tier.EASY, Tier.STANDARD, Tier.HARD, Tier.MAGIC)

class TaskCategory(Enum):
    """Категории задач для баланса"""
    PHYSICAL = "physical"
    MENTAL = "mental"
    CREATIVE = "creative"
    SOCIAL = "social"
    HOUSEHOLD = "household"

# Порядок обхода категорий при балансировке
CATEGORY_ROTATION = (
    TaskCategory.PHYSICAL,
    TaskCategory.MENTAL,
    TaskCategory.CREATIVE,
    TaskCategory.SOCIAL,
    TaskCategory.HOUSEHOLD,
)

class LevelAdvanceMode(Enum):
    """Момент, в который растёт level пользователя"""
    COMPLETION = "completion"
    GENERATION = "generation"

# ===== VALIDATION HELPERS =====

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} должен содержать минимум {min_length} символов")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} не должен превышать {max_length} символов")

    return text

def validate_enum_value(value: Any, enum_class: type, field_name: str = "value"):
    """Приведение строки к значению enum с понятной ошибкой"""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} должен быть одним из: {valid_values}")

def validate_iso_date(value: Union[str, date], field_name: str = "date") -> str:
    """Дата программы хранится строкой YYYY-MM-DD"""
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValidationError(f"Неверный формат даты {field_name}: {value}")

def normalize_text(text: str) -> str:
    """Нормализация текста задачи для сравнения на дубли"""
    return text.lower().strip()

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def _known_fields(cls, row: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in row.items() if key in names}

# ===== CORE MODELS =====

@dataclass(frozen=True)
class TierConfig:
    """Сколько задач каждого уровня запрашивается на день"""
    easy: int = 0
    standard: int = 0
    hard: int = 0
    magic: bool = False

    COUNT_FIELDS = ("easy", "standard", "hard")

    def __post_init__(self):
        for name in self.COUNT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} должен быть целым числом")
            if value < 0:
                raise ValidationError(f"{name} не может быть отрицательным: {value}")

        if not isinstance(self.magic, bool):
            raise ValidationError("magic должен быть bool")

    @property
    def requested_total(self) -> int:
        return self.easy + self.standard + self.hard + (1 if self.magic else 0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TierConfig":
        """Строгий разбор: неизвестные ключи - ошибка, а не тихий пропуск"""
        unknown = set(data) - {"easy", "standard", "hard", "magic"}
        if unknown:
            raise ValidationError(f"Неизвестные уровни задач: {sorted(unknown)}")
        return cls(**data)

@dataclass
class SelectedTask:
    """Задача, выбранная из пула, ещё не сохранённая"""
    text: str
    tier: Tier
    category: TaskCategory = TaskCategory.MENTAL
    is_custom: bool = False
    custom_task_id: Optional[int] = None

    @property
    def normalized(self) -> str:
        return normalize_text(self.text)

@dataclass
class TaskEntry:
    """Задача дня пользователя (строка коллекции tasks)"""
    user_id: int
    date: str
    task_text: str
    task_type: Tier
    position: int
    completed: bool = False
    completed_at: Optional[str] = None
    is_custom: bool = False
    custom_task_id: Optional[int] = None
    id: Optional[int] = None
    batch_id: Optional[str] = None

    def __post_init__(self):
        self.task_type = validate_enum_value(self.task_type, Tier, "task_type")
        self.date = validate_iso_date(self.date)

    def mark_completed(self) -> None:
        self.completed = True
        self.completed_at = datetime.now().isoformat()

    def mark_uncompleted(self) -> None:
        self.completed = False
        self.completed_at = None

    def to_row(self) -> Dict[str, Any]:
        row = {
            "user_id": self.user_id,
            "date": self.date,
            "task_text": self.task_text,
            "task_type": self.task_type.value,
            "position": self.position,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "is_custom": self.is_custom,
            "custom_task_id": self.custom_task_id,
            "batch_id": self.batch_id,
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TaskEntry":
        return cls(**_known_fields(cls, row))

@dataclass
class DayStatistics:
    """Кэшированная статистика дня (строка коллекции daily_stats)"""
    user_id: int
    date: str
    total_tasks: int = 0
    completed_tasks: int = 0
    easy_completed: int = 0
    standard_completed: int = 0
    hard_completed: int = 0
    magic_completed: bool = False
    flow_score: int = 0
    productivity_index: int = 0
    day_completed: bool = False
    version: int = 0

    def apply(self, tier: Tier, delta: int) -> None:
        """Изменить счётчики на +1/-1 для выполненной/снятой задачи"""
        self.completed_tasks = max(0, self.completed_tasks + delta)

        if tier is Tier.MAGIC:
            self.magic_completed = delta > 0
        else:
            counter = f"{tier.value}_completed"
            setattr(self, counter, max(0, getattr(self, counter) + delta))

        self.recalculate()

    def recalculate(self) -> None:
        """Пересчёт производных показателей"""
        if self.total_tasks > 0:
            self.flow_score = round_half_up(self.completed_tasks / self.total_tasks * 100)
        else:
            self.flow_score = 0

        self.productivity_index = (
            self.easy_completed * Tier.EASY.weight
            + self.standard_completed * Tier.STANDARD.weight
            + self.hard_completed * Tier.HARD.weight
            + (MAGIC_BONUS if self.magic_completed else 0)
        )

    def counters(self) -> Dict[str, Any]:
        """Изменяемые поля без ключа и версии"""
        return {
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "easy_completed": self.easy_completed,
            "standard_completed": self.standard_completed,
            "hard_completed": self.hard_completed,
            "magic_completed": self.magic_completed,
            "flow_score": self.flow_score,
            "productivity_index": self.productivity_index,
            "day_completed": self.day_completed,
        }

    def to_row(self) -> Dict[str, Any]:
        row = {"user_id": self.user_id, "date": self.date, "version": self.version}
        row.update(self.counters())
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DayStatistics":
        return cls(**_known_fields(cls, row))

@dataclass
class StreakRecord:
    """Стрик пользователя (строка коллекции streaks)"""
    user_id: int
    current_streak: int = 0
    longest_streak: int = 0
    total_days: int = 0
    last_completed_date: Optional[str] = None

    def credit(self, day: Union[str, date]) -> bool:
        """
        Засчитать квалифицирующий день.

        Возвращает False, если день уже засчитан или предшествует последнему
        засчитанному дню.
        """
        day = date.fromisoformat(validate_iso_date(day))

        if self.last_completed_date is None:
            self.current_streak = 1
        else:
            gap = (day - date.fromisoformat(self.last_completed_date)).days
            if gap <= 0:
                return False
            if gap == 1:
                self.current_streak += 1
            else:
                self.current_streak = 1

        self.total_days += 1
        self.longest_streak = max(self.longest_streak, self.current_streak)
        self.last_completed_date = day.isoformat()
        return True

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_days": self.total_days,
            "last_completed_date": self.last_completed_date,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StreakRecord":
        return cls(**_known_fields(cls, row))

@dataclass
class UserProgress:
    """Прогресс пользователя в программе (строка коллекции users)"""
    user_id: int
    level: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    onboarding_completed: bool = False
    morning_hour: int = DEFAULT_MORNING_HOUR
    evening_hour: int = DEFAULT_EVENING_HOUR
    first_name: Optional[str] = None
    username: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if not isinstance(self.level, int) or self.level < 1:
            raise ValidationError(f"level должен быть >= 1: {self.level}")

        for name in ("morning_hour", "evening_hour"):
            hour = getattr(self, name)
            if not isinstance(hour, int) or not 0 <= hour <= 23:
                raise ValidationError(f"{name} должен быть от 0 до 23")

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "друг"

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "level": self.level,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "onboarding_completed": self.onboarding_completed,
            "morning_hour": self.morning_hour,
            "evening_hour": self.evening_hour,
            "first_name": self.first_name,
            "username": self.username,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProgress":
        return cls(**_known_fields(cls, row))

@dataclass
class CustomTask:
    """Шаблон задачи из личной библиотеки пользователя"""
    user_id: int
    title: str
    category: TaskCategory = TaskCategory.MENTAL
    difficulty: Tier = Tier.HARD
    is_active: bool = True
    id: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        self.title = validate_text(self.title, min_length=1, max_length=200, field_name="title")
        self.category = validate_enum_value(self.category, TaskCategory, "category")
        self.difficulty = validate_enum_value(self.difficulty, Tier, "difficulty")

    def to_row(self) -> Dict[str, Any]:
        row = {
            "user_id": self.user_id,
            "title": self.title,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CustomTask":
        return cls(**_known_fields(cls, row))

@dataclass(frozen=True)
class DayCompletionResult:
    """Результат проверки завершения дня"""
    completed: bool
    streak_credited: bool
    new_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "streakCredited": self.streak_credited,
            "newLevel": self.new_level,
        }
