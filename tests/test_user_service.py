"""Tests for services/user_service.py - users, hours and streak rows"""

import pytest

from core.constants import STREAKS_TABLE
from core.database import NotFoundError
from core.models import StreakRecord, ValidationError
from services.user_service import validate_hour
from tests.conftest import make_user

USER_ID = 1001

class TestUsers:
    @pytest.mark.asyncio
    async def test_first_contact_creates_user_and_streak(self, services, store):
        user = await services.user_service.get_or_create_user(USER_ID, first_name="Маша")

        assert user.level == 1
        assert user.onboarding_completed is False
        assert user.display_name == "Маша"
        assert store.count(STREAKS_TABLE, {"user_id": USER_ID}) == 1

    @pytest.mark.asyncio
    async def test_second_contact_returns_existing(self, services, store):
        await services.user_service.get_or_create_user(USER_ID, first_name="Маша")
        await services.user_service.update_user(USER_ID, level=5)

        user = await services.user_service.get_or_create_user(USER_ID, first_name="Другое имя")

        assert user.level == 5
        assert user.first_name == "Маша"
        assert store.count(STREAKS_TABLE, {"user_id": USER_ID}) == 1

    @pytest.mark.asyncio
    async def test_missing_user(self, services):
        with pytest.raises(NotFoundError):
            await services.user_service.get_user(USER_ID)
        with pytest.raises(NotFoundError):
            await services.user_service.update_user(USER_ID, level=2)

    @pytest.mark.asyncio
    async def test_onboarding_sets_morning_hour(self, services):
        await services.user_service.get_or_create_user(USER_ID)

        user = await services.user_service.complete_onboarding(USER_ID, 7)

        assert user.onboarding_completed is True
        assert user.morning_hour == 7
        assert user.evening_hour == 21

    @pytest.mark.asyncio
    async def test_set_hours_validates(self, services):
        await services.user_service.get_or_create_user(USER_ID)

        with pytest.raises(ValidationError):
            await services.user_service.set_hours(USER_ID, 8, 25)

        user = await services.user_service.set_hours(USER_ID, "9", 22)
        assert (user.morning_hour, user.evening_hour) == (9, 22)

    @pytest.mark.asyncio
    async def test_hour_lookup_skips_not_onboarded(self, services):
        await make_user(services, user_id=1, morning_hour=8)
        await make_user(services, user_id=2, morning_hour=8, onboarded=False)
        await make_user(services, user_id=3, morning_hour=9, evening_hour=20)

        morning = await services.user_service.users_for_morning(8)
        evening = await services.user_service.users_for_evening(20)

        assert [user.user_id for user in morning] == [1]
        assert [user.user_id for user in evening] == [3]

    @pytest.mark.parametrize("hour", [-1, 24, "утро", None])
    def test_validate_hour_rejects(self, hour):
        with pytest.raises(ValidationError):
            validate_hour(hour)

class TestStreaks:
    @pytest.mark.asyncio
    async def test_missing_streak_reads_as_zero(self, services):
        streak = await services.user_service.get_streak(USER_ID)
        assert streak.current_streak == 0
        assert streak.last_completed_date is None

    @pytest.mark.asyncio
    async def test_save_mirrors_into_user_row(self, services):
        await services.user_service.get_or_create_user(USER_ID)

        await services.user_service.save_streak(StreakRecord(
            user_id=USER_ID, current_streak=3, longest_streak=4, total_days=6,
            last_completed_date="2025-06-10",
        ))

        user = await services.user_service.get_user(USER_ID)
        assert (user.current_streak, user.longest_streak) == (3, 4)
        assert (await services.user_service.get_streak(USER_ID)).total_days == 6

    @pytest.mark.asyncio
    async def test_save_inserts_when_row_missing(self, services, store):
        await services.user_service.save_streak(StreakRecord(user_id=USER_ID, current_streak=1))

        assert store.count(STREAKS_TABLE, {"user_id": USER_ID}) == 1
