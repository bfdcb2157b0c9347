"""
Settings-related callback handlers
Обработчики коллбеков онбординга и сброса
"""

import logging

from telegram.ext import Application, CallbackQueryHandler, ContextTypes
from telegram import Update
from telegram.constants import ParseMode

from handlers.utils import get_services, send_tasks
from utils.decorators import safe_handler

logger = logging.getLogger(__name__)

@safe_handler
async def onboard_morning_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Выбор утреннего часа при онбординге
    Формат callback: onboard_morning:{hour}
    """
    query = update.callback_query
    services = get_services(context)
    hour = int(query.data.split(":", 1)[1])

    tg_user = query.from_user
    await services.user_service.get_or_create_user(
        tg_user.id, first_name=tg_user.first_name, username=tg_user.username
    )
    user = await services.user_service.complete_onboarding(query.from_user.id, hour)
    await query.answer(f"⏰ Задачи будут приходить в {hour:02d}:00")

    tasks, _ = await services.progression.get_or_generate_today(user.user_id)
    user = await services.user_service.get_user(user.user_id)
    await send_tasks(update, context, user, tasks, edit=True)

@safe_handler
async def confirm_reset_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await get_services(context).progression.reset_progress(query.from_user.id)
    await query.answer()
    await query.edit_message_text(
        "♻️ <b>Прогресс сброшен.</b>\n\nНачните программу заново: /start",
        parse_mode=ParseMode.HTML,
    )

@safe_handler
async def cancel_reset_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    await query.edit_message_text("👌 Сброс отменён, прогресс сохранён")

def register_settings_callbacks(application: Application):
    application.add_handler(CallbackQueryHandler(onboard_morning_callback, pattern=r"^onboard_morning:\d{1,2}$"))
    application.add_handler(CallbackQueryHandler(confirm_reset_callback, pattern="^confirm_reset$"))
    application.add_handler(CallbackQueryHandler(cancel_reset_callback, pattern="^cancel_reset$"))
