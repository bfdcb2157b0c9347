import functools
import logging

from telegram import Update
from telegram.ext import ContextTypes

from ui.messages import GENERIC_ERROR

logger = logging.getLogger(__name__)

def safe_handler(func):
    """Любая ошибка обработчика - в лог, пользователю - одно общее сообщение"""
    @functools.wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        try:
            return await func(update, context, *args, **kwargs)
        except Exception:
            user_id = update.effective_user.id if update.effective_user else None
            logger.exception(f"❌ Ошибка в {func.__name__} (пользователь {user_id})")
            await reply_generic_error(update)
    return wrapper

async def reply_generic_error(update: Update) -> None:
    if update.callback_query:
        await update.callback_query.answer(GENERIC_ERROR, show_alert=True)
    elif update.effective_message:
        await update.effective_message.reply_text(GENERIC_ERROR)

def admin_only(func):
    @functools.wraps(func)
    async def wrapper(update, context, *args, **kwargs):
        admin_ids = context.bot_data.get("ADMIN_IDS", [])
        user_id = update.effective_user.id
        if user_id not in admin_ids:
            await update.message.reply_text("⛔️ Команда только для администратора.")
            return
        return await func(update, context, *args, **kwargs)
    return wrapper
