"""Tests for services/notifications.py - morning and evening broadcasts"""

from unittest.mock import AsyncMock

import pytest
from telegram.constants import ParseMode
from telegram.error import Forbidden

from services.notifications import NotificationService
from tests.conftest import complete_all, make_user

@pytest.fixture
def bot():
    return AsyncMock()

@pytest.fixture
def notifications(bot, services):
    return NotificationService(
        bot,
        services.progression,
        services.user_service,
        services.task_service,
    )

class TestMorning:
    @pytest.mark.asyncio
    async def test_generates_and_sends_for_matching_hour(self, notifications, services, bot):
        await make_user(services, user_id=1, morning_hour=8)
        await make_user(services, user_id=2, morning_hour=9)

        report = await notifications.send_morning_tasks(8)

        assert report == {"sent": 1, "skipped": 0, "failed": 0}
        bot.send_message.assert_awaited_once()
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["chat_id"] == 1
        assert kwargs["parse_mode"] == ParseMode.HTML
        assert kwargs["reply_markup"] is not None
        assert await services.task_service.has_tasks_for_date(1, services.task_service.today())
        assert not await services.task_service.has_tasks_for_date(2, services.task_service.today())

    @pytest.mark.asyncio
    async def test_existing_day_is_not_regenerated(self, notifications, services, bot):
        await make_user(services, user_id=1)
        tasks, _ = await services.progression.get_or_generate_today(1)
        await complete_all(services, tasks[:3])

        report = await notifications.send_morning_tasks(8)

        assert report["skipped"] == 1
        bot.send_message.assert_not_awaited()
        kept = await services.task_service.get_today_tasks(1)
        assert [task.id for task in kept] == [task.id for task in tasks]
        assert sum(task.completed for task in kept) == 3

    @pytest.mark.asyncio
    async def test_not_onboarded_users_ignored(self, notifications, services, bot):
        await make_user(services, user_id=1, onboarded=False)

        report = await notifications.send_morning_tasks(8)

        assert report == {"sent": 0, "skipped": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_blocked_user_does_not_stop_the_run(self, notifications, services, bot):
        await make_user(services, user_id=1)
        await make_user(services, user_id=2)
        bot.send_message.side_effect = [Forbidden("bot was blocked by the user"), None]

        report = await notifications.send_morning_tasks(8)

        assert report == {"sent": 1, "skipped": 0, "failed": 1}

class TestEvening:
    @pytest.mark.asyncio
    async def test_summary_only_for_users_with_tasks(self, notifications, services, bot):
        await make_user(services, user_id=1, evening_hour=21)
        await make_user(services, user_id=2, evening_hour=21)
        await services.progression.get_or_generate_today(1)

        report = await notifications.send_evening_summaries(21)

        assert report == {"sent": 1, "skipped": 1, "failed": 0}
        assert bot.send_message.await_args.kwargs["chat_id"] == 1

    @pytest.mark.asyncio
    async def test_summary_is_read_only(self, notifications, services, bot):
        await make_user(services, user_id=1)
        await services.progression.get_or_generate_today(1)

        await notifications.send_evening_summaries(21)

        user = await services.user_service.get_user(1)
        assert user.level == 1
        assert user.current_streak == 0

class TestHourlyCheck:
    @pytest.mark.asyncio
    async def test_runs_both_broadcasts(self, notifications, services, bot):
        await make_user(services, user_id=1, morning_hour=21, evening_hour=21)

        report = await notifications.run_hourly_check(21)

        # Утром задачи создаются, вечером по ним же уходит сводка
        assert report == {
            "morning": {"sent": 1, "skipped": 0, "failed": 0},
            "evening": {"sent": 1, "skipped": 0, "failed": 0},
        }
        assert bot.send_message.await_count == 2

    def test_shutdown_without_start(self, notifications):
        notifications.shutdown()
        assert notifications.scheduler is None
