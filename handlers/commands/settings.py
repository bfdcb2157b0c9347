"""
Settings commands
Команды настроек: время уведомлений и сброс программы
"""

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from core.models import ValidationError
from handlers.utils import get_services, require_user
from ui.keyboards import reset_confirm_keyboard
from ui.messages import reset_confirm_message
from utils.decorators import safe_handler

SETTIME_USAGE = "Использование: /settime <час утра> <час вечера>, например /settime 8 21"

@safe_handler
async def settime_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Команда /settime - часы утренней и вечерней рассылки"""
    user = await require_user(update, context)
    if user is None:
        return

    if len(context.args or []) != 2:
        await update.message.reply_text(SETTIME_USAGE)
        return

    morning, evening = context.args
    try:
        user = await get_services(context).user_service.set_hours(user.user_id, morning, evening)
    except ValidationError:
        await update.message.reply_text(SETTIME_USAGE)
        return

    await update.message.reply_html(
        f"⏰ <b>Время обновлено</b>\n\n"
        f"🌅 Задачи: {user.morning_hour:02d}:00\n"
        f"🌙 Итоги дня: {user.evening_hour:02d}:00"
    )

@safe_handler
async def reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Команда /reset - сброс только после подтверждения"""
    user = await require_user(update, context)
    if user is None:
        return

    await update.message.reply_html(reset_confirm_message(), reply_markup=reset_confirm_keyboard())

def register_settings_handlers(application: Application):
    application.add_handler(CommandHandler("settime", settime_command))
    application.add_handler(CommandHandler("reset", reset_command))
