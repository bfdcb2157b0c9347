# handlers/commands/basic.py

import logging

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update
from telegram.constants import ParseMode

from handlers.utils import get_services, send_tasks
from ui.keyboards import morning_hour_keyboard
from ui.messages import help_message, welcome_back_message, welcome_message
from utils.decorators import safe_handler

logger = logging.getLogger(__name__)

@safe_handler
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    services = get_services(context)
    tg_user = update.effective_user

    # Повторный /start в течение нескольких секунд игнорируется
    dedupe_seconds = context.bot_data.get("START_DEDUPE_SECONDS", 5)
    if dedupe_seconds and not await services.cache.add(f"start:{tg_user.id}", dedupe_seconds):
        logger.debug(f"🔁 Повторный /start от {tg_user.id} пропущен")
        return

    user = await services.user_service.get_or_create_user(
        tg_user.id, first_name=tg_user.first_name, username=tg_user.username
    )

    if not user.onboarding_completed:
        await update.message.reply_text(
            welcome_message(user), parse_mode=ParseMode.HTML, reply_markup=morning_hour_keyboard()
        )
        return

    tasks, _ = await services.progression.get_or_generate_today(user.user_id)
    user = await services.user_service.get_user(user.user_id)
    await update.message.reply_text(welcome_back_message(user, services.progression.current_day(user)))
    await send_tasks(update, context, user, tasks)

@safe_handler
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_html(help_message())

def register_basic_handlers(application: Application):
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
