# handlers/callbacks/tasks.py

import logging

from telegram.ext import Application, CallbackQueryHandler, ContextTypes
from telegram import Update
from telegram.constants import ParseMode

from core.constants import TASKS_PER_PAGE
from core.database import NotFoundError
from handlers.utils import get_services, send_tasks
from ui.messages import day_completed_message, task_toggled_message
from utils.decorators import safe_handler

logger = logging.getLogger(__name__)

def _callback_arg(data: str) -> int:
    return int(data.split(":", 1)[1])

@safe_handler
async def task_toggle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    services = get_services(context)
    user_id = query.from_user.id
    task_id = _callback_arg(query.data)

    try:
        task = await services.task_service.get_task(task_id)
    except NotFoundError:
        task = None
    if task is None or task.user_id != user_id:
        await query.answer("Задача не найдена. Обновите список: /tasks", show_alert=True)
        return

    task = await services.progression.toggle_task(task_id)
    result = await services.progression.check_day_completion(user_id, task.date)
    await query.answer(task_toggled_message(task))

    tasks = await services.task_service.get_tasks_for_date(user_id, task.date)
    position = next((i for i, t in enumerate(tasks) if t.id == task_id), 0)
    user = await services.user_service.get_user(user_id)
    await send_tasks(update, context, user, tasks, page=position // TASKS_PER_PAGE, edit=True)

    if result.completed and result.streak_credited:
        stats = await services.progression.get_daily_stats(user_id, task.date)
        streak = await services.user_service.get_streak(user_id)
        await query.message.reply_text(
            day_completed_message(stats, streak, result.new_level), parse_mode=ParseMode.HTML
        )

@safe_handler
async def tasks_page_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    services = get_services(context)

    user = await services.user_service.get_user(query.from_user.id)
    tasks = await services.task_service.get_today_tasks(user.user_id)
    await send_tasks(update, context, user, tasks, page=_callback_arg(query.data), edit=True)

@safe_handler
async def generate_today_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    services = get_services(context)

    tasks, created = await services.progression.get_or_generate_today(query.from_user.id)
    if created:
        logger.info(f"📋 Задачи на сегодня созданы по кнопке: {query.from_user.id}")
    user = await services.user_service.get_user(query.from_user.id)
    await send_tasks(update, context, user, tasks, edit=True)

def register_tasks_callbacks(application: Application):
    application.add_handler(CallbackQueryHandler(task_toggle_callback, pattern=r"^task_toggle:\d+$"))
    application.add_handler(CallbackQueryHandler(tasks_page_callback, pattern=r"^tasks_page:\d+$"))
    application.add_handler(CallbackQueryHandler(generate_today_callback, pattern="^generate_today$"))
