import asyncio
import logging

from telegram import BotCommand, Update
from telegram.error import Conflict, NetworkError, TimedOut
from telegram.ext import Application, ApplicationBuilder, ContextTypes

from bot.middleware import setup_middlewares
from handlers.router import register_handlers
from services import ServiceManager
from services.notifications import NotificationService
from utils.decorators import reply_generic_error

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand("start", "Начать программу"),
    BotCommand("tasks", "Задачи на сегодня"),
    BotCommand("stats", "Статистика дня"),
    BotCommand("add", "Добавить свою сложную задачу"),
    BotCommand("regenerate", "Пересоздать задачи на сегодня"),
    BotCommand("settime", "Время уведомлений"),
    BotCommand("reset", "Начать заново"),
    BotCommand("help", "Справка"),
]

def build_application(config, services: ServiceManager) -> Application:
    # Создание Application
    application = (
        ApplicationBuilder()
        .token(config.require_bot_token())
        .concurrent_updates(True)
        .post_init(_on_startup)
        .post_shutdown(_on_shutdown)
        .build()
    )

    notifications = NotificationService(
        application.bot,
        services.progression,
        services.user_service,
        services.task_service,
        tz_name=config.program.timezone,
    )

    application.bot_data.update({
        "services": services,
        "notifications": notifications,
        "ADMIN_IDS": config.telegram.admin_user_ids,
        "START_DEDUPE_SECONDS": config.cache.start_dedupe_seconds,
    })

    setup_middlewares(application, services.cache, config.cache.flood_interval_seconds)
    register_handlers(application)
    application.add_error_handler(_error_handler)

    total_handlers = sum(len(handlers) for handlers in application.handlers.values())
    logger.info(f"✅ Зарегистрировано обработчиков: {total_handlers}")
    return application

async def _on_startup(application: Application):
    await application.bot.set_my_commands(BOT_COMMANDS)
    application.bot_data["notifications"].start()
    logger.info("🚀 FlowBot запущен")

async def _on_shutdown(application: Application):
    application.bot_data["notifications"].shutdown()
    await application.bot_data["services"].close_services()
    logger.info("🛑 FlowBot остановлен")

async def _error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Ошибки, не перехваченные обработчиками"""
    error = context.error

    if isinstance(error, Conflict):
        logger.warning("⚠️ Обнаружен конфликт getUpdates (запущен второй экземпляр?)")
        await asyncio.sleep(5)
    elif isinstance(error, (TimedOut, NetworkError)):
        logger.warning(f"⚠️ Временная сетевая ошибка: {error}")
    else:
        logger.error("❌ Неожиданная ошибка", exc_info=error)
        if isinstance(update, Update) and update.effective_user:
            await reply_generic_error(update)
