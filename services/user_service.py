# services/user_service.py

import logging
from typing import List, Optional

from core.constants import USERS_TABLE, STREAKS_TABLE, DEFAULT_MORNING_HOUR, DEFAULT_EVENING_HOUR
from core.database import BaseStore, NotFoundError
from core.models import StreakRecord, UserProgress, ValidationError

logger = logging.getLogger(__name__)

def validate_hour(hour, field_name: str = "hour") -> int:
    try:
        value = int(hour)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} должен быть числом от 0 до 23")
    if not 0 <= value <= 23:
        raise ValidationError(f"{field_name} должен быть от 0 до 23")
    return value

class UserService:
    """Пользователи программы и их стрики"""

    def __init__(self, store: BaseStore, default_morning_hour: int = DEFAULT_MORNING_HOUR,
                 default_evening_hour: int = DEFAULT_EVENING_HOUR):
        self.store = store
        self.default_morning_hour = default_morning_hour
        self.default_evening_hour = default_evening_hour

    async def get_user(self, user_id: int) -> UserProgress:
        row = await self.store.select_one(USERS_TABLE, {"user_id": user_id})
        if row is None:
            raise NotFoundError(f"Пользователь {user_id} не найден")
        return UserProgress.from_row(row)

    async def get_or_create_user(self, user_id: int, first_name: Optional[str] = None,
                                 username: Optional[str] = None) -> UserProgress:
        """При первом контакте создаются пользователь (level 1) и нулевой стрик"""
        row = await self.store.select_one(USERS_TABLE, {"user_id": user_id})
        if row is not None:
            return UserProgress.from_row(row)

        user = UserProgress(
            user_id=user_id,
            first_name=first_name,
            username=username,
            morning_hour=self.default_morning_hour,
            evening_hour=self.default_evening_hour,
        )
        await self.store.insert(USERS_TABLE, [user.to_row()])
        await self.ensure_streak(user_id)

        logger.info(f"👤 Новый пользователь: {user_id} ({user.display_name})")
        return user

    async def update_user(self, user_id: int, **values) -> UserProgress:
        rows = await self.store.update(USERS_TABLE, {"user_id": user_id}, values)
        if not rows:
            raise NotFoundError(f"Пользователь {user_id} не найден")
        return UserProgress.from_row(rows[0])

    async def complete_onboarding(self, user_id: int, morning_hour: int,
                                  evening_hour: Optional[int] = None) -> UserProgress:
        values = {
            "onboarding_completed": True,
            "morning_hour": validate_hour(morning_hour, "morning_hour"),
        }
        if evening_hour is not None:
            values["evening_hour"] = validate_hour(evening_hour, "evening_hour")

        user = await self.update_user(user_id, **values)
        logger.info(f"🎓 Онбординг завершён: {user_id}, утро в {user.morning_hour}:00")
        return user

    async def set_hours(self, user_id: int, morning_hour: int, evening_hour: int) -> UserProgress:
        morning = validate_hour(morning_hour, "morning_hour")
        evening = validate_hour(evening_hour, "evening_hour")
        return await self.update_user(user_id, morning_hour=morning, evening_hour=evening)

    async def users_for_morning(self, hour: int) -> List[UserProgress]:
        return await self._users_for_hour("morning_hour", hour)

    async def users_for_evening(self, hour: int) -> List[UserProgress]:
        return await self._users_for_hour("evening_hour", hour)

    async def _users_for_hour(self, column: str, hour: int) -> List[UserProgress]:
        rows = await self.store.select(
            USERS_TABLE, {column: validate_hour(hour), "onboarding_completed": True}
        )
        return [UserProgress.from_row(row) for row in rows]

    # ===== СТРИКИ =====

    async def get_streak(self, user_id: int) -> StreakRecord:
        row = await self.store.select_one(STREAKS_TABLE, {"user_id": user_id})
        if row is None:
            return StreakRecord(user_id=user_id)
        return StreakRecord.from_row(row)

    async def ensure_streak(self, user_id: int) -> StreakRecord:
        row = await self.store.select_one(STREAKS_TABLE, {"user_id": user_id})
        if row is not None:
            return StreakRecord.from_row(row)
        streak = StreakRecord(user_id=user_id)
        await self.store.insert(STREAKS_TABLE, [streak.to_row()])
        return streak

    async def save_streak(self, streak: StreakRecord) -> StreakRecord:
        """Сохранить стрик и продублировать текущие значения в строку пользователя"""
        values = streak.to_row()
        updated = await self.store.update(STREAKS_TABLE, {"user_id": streak.user_id}, values)
        if not updated:
            await self.store.insert(STREAKS_TABLE, [values])

        await self.store.update(USERS_TABLE, {"user_id": streak.user_id}, {
            "current_streak": streak.current_streak,
            "longest_streak": streak.longest_streak,
        })
        return streak

    async def recreate_streak(self, user_id: int) -> StreakRecord:
        await self.store.delete(STREAKS_TABLE, {"user_id": user_id})
        streak = StreakRecord(user_id=user_id)
        await self.store.insert(STREAKS_TABLE, [streak.to_row()])
        return streak
