# handlers/commands/tasks.py
"""
Команды задач дня: /tasks, /regenerate, /add
"""

import logging

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from core.models import ValidationError
from handlers.utils import get_services, require_user, send_tasks
from utils.decorators import safe_handler

logger = logging.getLogger(__name__)

@safe_handler
async def tasks_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = await require_user(update, context)
    if user is None:
        return

    tasks = await get_services(context).task_service.get_today_tasks(user.user_id)
    await send_tasks(update, context, user, tasks)

@safe_handler
async def regenerate_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = await require_user(update, context)
    if user is None:
        return

    tasks = await get_services(context).progression.regenerate_day(user.user_id)
    await update.message.reply_text("🔄 Задачи на сегодня пересозданы")
    await send_tasks(update, context, user, tasks)

@safe_handler
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/add <текст> - сложная задача в библиотеку и в список на сегодня"""
    user = await require_user(update, context)
    if user is None:
        return

    text = " ".join(context.args or []).strip()
    if not text:
        await update.message.reply_text("Использование: /add <текст задачи>")
        return

    services = get_services(context)
    try:
        template = await services.custom_task_service.create(user.user_id, text)
    except ValidationError:
        await update.message.reply_text("⚠️ Текст задачи должен быть от 1 до 200 символов")
        return

    await services.custom_task_service.add_to_day(user.user_id, template.id)
    logger.info(f"➕ Пользователь {user.user_id} добавил сложную задачу")

    tasks = await services.task_service.get_today_tasks(user.user_id)
    await update.message.reply_text("❤️ Задача добавлена в библиотеку и в список на сегодня")
    await send_tasks(update, context, user, tasks)

def register_task_handlers(application: Application):
    application.add_handler(CommandHandler("tasks", tasks_command))
    application.add_handler(CommandHandler("regenerate", regenerate_command))
    application.add_handler(CommandHandler("add", add_command))
