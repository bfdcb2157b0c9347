"""Shared test fixtures for FlowBot tests.

- MemoryStore-backed services with a seeded random.Random
- Helpers for creating onboarded users and a personal hard-task library

Async setup lives in plain helper coroutines so fixtures stay synchronous.
"""

import random

import pytest

from core.constants import USERS_TABLE
from core.database import MemoryStore
from core.models import LevelAdvanceMode, StreakRecord
from config import ProgramConfig
from services import ServiceManager

DAY = "2025-06-10"
NEXT_DAY = "2025-06-11"

HARD_LIBRARY = [
    "Закончить квартальный отчёт",
    "Разобрать входящую почту до нуля",
    "Подготовить презентацию для клиента",
    "Написать раздел документации",
    "Провести ревью двух pull request",
    "Составить бюджет на месяц",
    "Записаться к врачу и сходить",
    "Отремонтировать полку в коридоре",
    "Выучить 50 слов испанского",
    "Пробежать 5 километров",
]

# ─────────────────────────────────────────────────────────────────────────────
# Service Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def rng():
    return random.Random(20250610)

@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def services(store, rng):
    """Services in the default level mode (level grows on day completion)."""
    return ServiceManager(store, rng=rng)

@pytest.fixture
def generation_services(store, rng):
    """Services where level grows right after a day is generated."""
    program = ProgramConfig(level_advance_mode=LevelAdvanceMode.GENERATION)
    return ServiceManager(store, program=program, rng=rng)

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

async def make_user(services, user_id=1001, level=1, onboarded=True, morning_hour=8,
                    evening_hour=21, streak=None):
    """Create a user row at the given level, optionally with a streak record."""
    await services.user_service.get_or_create_user(user_id, first_name="Тест")
    await services.store.update(USERS_TABLE, {"user_id": user_id}, {
        "level": level,
        "onboarding_completed": onboarded,
        "morning_hour": morning_hour,
        "evening_hour": evening_hour,
    })
    if streak is not None:
        await services.user_service.save_streak(StreakRecord(user_id=user_id, **streak))
    return await services.user_service.get_user(user_id)

async def make_hard_library(services, user_id=1001, titles=HARD_LIBRARY):
    return [await services.custom_task_service.create(user_id, title) for title in titles]

async def complete_all(services, tasks, include_magic=False):
    for task in tasks:
        if task.task_type.value == "magic" and not include_magic:
            continue
        await services.progression.record_completion(task.id)
