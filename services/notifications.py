"""
Сервис уведомлений
"""

import logging
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from telegram.constants import ParseMode
from telegram.error import TelegramError

from core.models import FlowBotError, UserProgress
from services.progression import ProgressionService
from services.task_service import TaskService
from services.user_service import UserService
from ui.keyboards import tasks_keyboard
from ui.messages import evening_message, morning_message
from utils.datetime_utils import current_hour, get_timezone

logger = logging.getLogger(__name__)

def _empty_report() -> Dict[str, int]:
    return {"sent": 0, "skipped": 0, "failed": 0}

class NotificationService:
    """Утренние задачи и вечерние итоги по часу, выбранному пользователем"""

    def __init__(self, bot, progression: ProgressionService, user_service: UserService,
                 task_service: TaskService, tz_name: Optional[str] = None):
        self.bot = bot
        self.progression = progression
        self.user_service = user_service
        self.task_service = task_service
        self.tz_name = tz_name
        self.scheduler: Optional[AsyncIOScheduler] = None

    def start(self):
        """Запуск планировщика: проверка в начале каждого часа"""
        timezone = get_timezone(self.tz_name)
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self.scheduler.add_job(
            self.run_hourly_check,
            CronTrigger(minute=0, timezone=timezone),
            id='hourly_notifications',
            replace_existing=True,
            misfire_grace_time=300,
        )
        self.scheduler.start()
        logger.info(f"📅 Сервис уведомлений запущен ({timezone.zone})")

    async def run_hourly_check(self, hour: Optional[int] = None) -> Dict[str, Dict[str, int]]:
        """Утренняя и вечерняя рассылка для пользователей с этим часом"""
        if hour is None:
            hour = current_hour(self.tz_name)

        logger.info(f"⏰ Проверка уведомлений на {hour:02d}:00")
        return {
            "morning": await self.send_morning_tasks(hour),
            "evening": await self.send_evening_summaries(hour),
        }

    async def send_morning_tasks(self, hour: int) -> Dict[str, int]:
        """Сгенерировать и отправить задачи дня; уже имеющийся набор не трогается"""
        report = _empty_report()
        users = await self.user_service.users_for_morning(hour)

        for user in users:
            try:
                tasks, created = await self.progression.get_or_generate_today(user.user_id)
                if not created:
                    report["skipped"] += 1
                    continue

                fresh = await self.user_service.get_user(user.user_id)
                await self.bot.send_message(
                    chat_id=user.user_id,
                    text=morning_message(fresh, tasks, self.progression.current_day(fresh)),
                    parse_mode=ParseMode.HTML,
                    reply_markup=tasks_keyboard(tasks),
                )
                report["sent"] += 1

            except (TelegramError, FlowBotError) as e:
                report["failed"] += 1
                logger.error(f"❌ Ошибка утренней рассылки пользователю {user.user_id}: {e}")

        logger.info(f"🌅 Утренняя рассылка {hour:02d}:00: {report}")
        return report

    async def send_evening_summaries(self, hour: int) -> Dict[str, int]:
        """Итоги дня только для чтения"""
        report = _empty_report()
        users = await self.user_service.users_for_evening(hour)
        today = self.task_service.today()

        for user in users:
            try:
                if not await self.task_service.has_tasks_for_date(user.user_id, today):
                    report["skipped"] += 1
                    continue

                await self._send_evening_summary(user, today)
                report["sent"] += 1

            except (TelegramError, FlowBotError) as e:
                report["failed"] += 1
                logger.error(f"❌ Ошибка вечерней рассылки пользователю {user.user_id}: {e}")

        logger.info(f"🌙 Вечерняя рассылка {hour:02d}:00: {report}")
        return report

    async def _send_evening_summary(self, user: UserProgress, today: str):
        stats = await self.task_service.get_daily_stats(user.user_id, today)
        streak = await self.user_service.get_streak(user.user_id)
        await self.bot.send_message(
            chat_id=user.user_id,
            text=evening_message(user, stats, streak),
            parse_mode=ParseMode.HTML,
        )

    def shutdown(self):
        """Остановка сервиса уведомлений"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("📅 Сервис уведомлений остановлен")
