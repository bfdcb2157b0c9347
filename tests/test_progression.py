"""Tests for services/progression.py - ProgressionService

- Day generation per level and date
- Day completion, streak credit and level growth in both modes
- Idempotent repeated checks and concurrent updates
- Progress reset
"""

import asyncio
from collections import Counter

import pytest

from core.constants import PLANNING_TASK_TEXT, TASKS_TABLE
from core.database import ConcurrentMutationError, NotFoundError
from core.models import Tier
from services.progression import tier_config_for_day
from tests.conftest import DAY, NEXT_DAY, complete_all, make_hard_library, make_user

USER_ID = 1001

def tiers(tasks):
    return Counter(task.task_type for task in tasks)

class TestTierTable:
    @pytest.mark.parametrize("day, expected", [
        (1, (30, 0, 0, False)),
        (5, (30, 0, 0, False)),
        (6, (20, 10, 0, False)),
        (10, (20, 10, 0, False)),
        (11, (10, 11, 9, False)),
        (15, (10, 11, 9, False)),
        (16, (10, 11, 9, True)),
        (40, (10, 11, 9, True)),
    ])
    def test_boundaries(self, day, expected):
        config = tier_config_for_day(day)
        assert (config.easy, config.standard, config.hard, config.magic) == expected

class TestGeneration:
    @pytest.mark.asyncio
    async def test_first_day_for_new_user(self, services):
        await make_user(services)

        tasks = await services.progression.generate_day(USER_ID, date=DAY)

        assert tiers(tasks) == {Tier.EASY: 30}
        user = await services.user_service.get_user(USER_ID)
        assert user.level == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, services):
        with pytest.raises(NotFoundError):
            await services.progression.generate_day(404, date=DAY)

    @pytest.mark.asyncio
    async def test_hard_day_uses_personal_library(self, services):
        await make_user(services, level=12)
        library = await make_hard_library(services)

        tasks = await services.progression.generate_day(USER_ID, date=DAY)

        hard = [task for task in tasks if task.task_type is Tier.HARD]
        assert hard[0].task_text == PLANNING_TASK_TEXT
        assert len(hard) == 9
        library_ids = {template.id for template in library}
        assert {task.custom_task_id for task in hard[1:]} <= library_ids

    @pytest.mark.asyncio
    async def test_regeneration_replaces_the_whole_day(self, services, store):
        await make_user(services)
        first = await services.progression.generate_day(USER_ID, date=DAY)
        await services.progression.record_completion(first[0].id)

        second = await services.progression.generate_day(USER_ID, date=DAY)

        assert store.count(TASKS_TABLE, {"user_id": USER_ID, "date": DAY}) == 30
        assert not {task.id for task in first} & {task.id for task in second}
        stats = await services.progression.get_daily_stats(USER_ID, DAY)
        assert stats.completed_tasks == 0

    @pytest.mark.asyncio
    async def test_get_or_generate_today_is_atomic(self, services):
        await make_user(services)

        results = await asyncio.gather(
            services.progression.get_or_generate_today(USER_ID),
            services.progression.get_or_generate_today(USER_ID),
        )

        assert sorted(created for _, created in results) == [False, True]
        first, second = (tasks for tasks, _ in results)
        assert [task.id for task in first] == [task.id for task in second]

    @pytest.mark.asyncio
    async def test_authored_tasks_do_not_block_generation(self, services):
        await make_user(services)
        template = await services.custom_task_service.create(USER_ID, "Закончить отчёт")
        added = await services.custom_task_service.add_to_day(USER_ID, template.id)
        await services.progression.record_completion(added.id)

        tasks, created = await services.progression.get_or_generate_today(USER_ID)

        assert created is True
        assert len(tasks) == 31
        assert tasks[-1].task_text == "Закончить отчёт"
        assert tasks[-1].custom_task_id == template.id
        assert tasks[-1].completed is True
        stats = await services.progression.get_daily_stats(USER_ID)
        assert (stats.total_tasks, stats.completed_tasks) == (31, 1)

class TestDayCompletion:
    @pytest.mark.asyncio
    async def test_partial_day_is_not_completed(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks[:-1])

        result = await services.progression.check_day_completion(USER_ID, DAY)

        assert result.to_dict() == {"completed": False, "streakCredited": False, "newLevel": 1}

    @pytest.mark.asyncio
    async def test_full_day_credits_streak_and_advances_level(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)

        result = await services.progression.check_day_completion(USER_ID, DAY)

        assert result.completed and result.streak_credited
        assert result.new_level == 2
        user = await services.user_service.get_user(USER_ID)
        assert (user.level, user.current_streak, user.longest_streak) == (2, 1, 1)
        assert (await services.progression.get_daily_stats(USER_ID, DAY)).day_completed is True

    @pytest.mark.asyncio
    async def test_repeated_check_changes_nothing(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)
        await services.progression.check_day_completion(USER_ID, DAY)

        again = await services.progression.check_day_completion(USER_ID, DAY)

        assert again.completed is True
        assert again.streak_credited is False
        assert again.new_level == 2
        streak = await services.user_service.get_streak(USER_ID)
        assert streak.total_days == 1

    @pytest.mark.asyncio
    async def test_concurrent_checks_credit_once(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)

        results = await asyncio.gather(*(
            services.progression.check_day_completion(USER_ID, DAY) for _ in range(3)
        ))

        assert sum(result.streak_credited for result in results) == 1
        assert (await services.user_service.get_user(USER_ID)).level == 2

    @pytest.mark.asyncio
    async def test_magic_task_does_not_gate_completion(self, services):
        await make_user(services, level=16)
        await make_hard_library(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        assert tiers(tasks)[Tier.MAGIC] == 1

        await complete_all(services, tasks, include_magic=False)
        result = await services.progression.check_day_completion(USER_ID, DAY)

        assert result.completed is True
        stats = await services.progression.get_daily_stats(USER_ID, DAY)
        assert stats.magic_completed is False
        assert stats.completed_tasks == 30

    @pytest.mark.asyncio
    async def test_uncompleting_after_check_does_not_revoke_level(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)
        await services.progression.check_day_completion(USER_ID, DAY)

        await services.progression.record_uncompletion(tasks[0].id)

        user = await services.user_service.get_user(USER_ID)
        assert user.level == 2

    @pytest.mark.asyncio
    async def test_consecutive_days_grow_streak(self, services):
        await make_user(services)
        for day in (DAY, NEXT_DAY):
            tasks = await services.progression.generate_day(USER_ID, date=day)
            await complete_all(services, tasks)
            await services.progression.check_day_completion(USER_ID, day)

        user = await services.user_service.get_user(USER_ID)
        assert user.current_streak == 2
        assert user.level == 3

    @pytest.mark.asyncio
    async def test_gap_restarts_streak(self, services):
        await make_user(services, level=3, streak={
            "current_streak": 5, "longest_streak": 5, "total_days": 5,
            "last_completed_date": "2025-06-01",
        })
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)

        await services.progression.check_day_completion(USER_ID, DAY)

        streak = await services.user_service.get_streak(USER_ID)
        assert (streak.current_streak, streak.longest_streak, streak.total_days) == (1, 5, 6)

    @pytest.mark.asyncio
    async def test_concurrent_completions_count_every_task(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)

        await asyncio.gather(*(services.progression.record_completion(task.id) for task in tasks))

        stats = await services.progression.get_daily_stats(USER_ID, DAY)
        assert stats.completed_tasks == 30
        assert stats.flow_score == 100

    @pytest.mark.asyncio
    async def test_toggle_flips_state(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)

        done = await services.progression.toggle_task(tasks[0].id)
        undone = await services.progression.toggle_task(tasks[0].id)

        assert done.completed is True
        assert undone.completed is False

    @pytest.mark.asyncio
    async def test_regenerating_completed_day_does_not_advance_again(self, services):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)
        await services.progression.check_day_completion(USER_ID, DAY)

        user = await services.user_service.get_user(USER_ID)
        again = await services.progression.generate_day(
            USER_ID, services.progression.current_day(user), date=DAY, advance_level=False
        )
        await complete_all(services, again)
        result = await services.progression.check_day_completion(USER_ID, DAY)

        assert result.streak_credited is False
        assert result.new_level == 2
        assert (await services.user_service.get_user(USER_ID)).level == 2

    @pytest.mark.asyncio
    async def test_failed_day_flag_leaves_level_for_retry(self, services, monkeypatch):
        await make_user(services)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)

        original = services.task_service.mutate_daily_stats

        async def conflicting(*args, **kwargs):
            raise ConcurrentMutationError("daily_stats busy")

        monkeypatch.setattr(services.task_service, "mutate_daily_stats", conflicting)
        with pytest.raises(ConcurrentMutationError):
            await services.progression.check_day_completion(USER_ID, DAY)
        assert (await services.user_service.get_user(USER_ID)).level == 1

        monkeypatch.setattr(services.task_service, "mutate_daily_stats", original)
        result = await services.progression.check_day_completion(USER_ID, DAY)

        assert result.completed is True
        assert result.new_level == 2
        assert (await services.user_service.get_streak(USER_ID)).total_days == 1

class TestGenerationMode:
    @pytest.mark.asyncio
    async def test_level_grows_on_generation(self, generation_services):
        await make_user(generation_services)

        await generation_services.progression.generate_day(USER_ID, date=DAY)

        user = await generation_services.user_service.get_user(USER_ID)
        assert user.level == 2
        assert generation_services.progression.current_day(user) == 1

    @pytest.mark.asyncio
    async def test_completion_does_not_advance_again(self, generation_services):
        await make_user(generation_services)
        tasks = await generation_services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(generation_services, tasks)

        result = await generation_services.progression.check_day_completion(USER_ID, DAY)

        assert result.streak_credited is True
        assert result.new_level == 2

    @pytest.mark.asyncio
    async def test_regenerate_keeps_level(self, generation_services):
        await make_user(generation_services)
        await generation_services.progression.get_or_generate_today(USER_ID)

        tasks = await generation_services.progression.regenerate_day(USER_ID)

        user = await generation_services.user_service.get_user(USER_ID)
        assert user.level == 2
        assert tiers(tasks) == {Tier.EASY: 30}

class TestReset:
    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, services, store):
        await make_user(services, level=7)
        tasks = await services.progression.generate_day(USER_ID, date=DAY)
        await complete_all(services, tasks)
        await services.progression.check_day_completion(USER_ID, DAY)

        await services.progression.reset_progress(USER_ID)

        user = await services.user_service.get_user(USER_ID)
        assert (user.level, user.onboarding_completed, user.current_streak) == (1, False, 0)
        assert store.count(TASKS_TABLE, {"user_id": USER_ID}) == 0
        streak = await services.user_service.get_streak(USER_ID)
        assert streak.total_days == 0
        assert streak.last_completed_date is None

    @pytest.mark.asyncio
    async def test_reset_unknown_user(self, services):
        with pytest.raises(NotFoundError):
            await services.progression.reset_progress(404)
