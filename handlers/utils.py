# ===== handlers/utils.py =====
from typing import List, Optional

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from core.database import NotFoundError
from core.models import TaskEntry, UserProgress
from services import ServiceManager
from ui.keyboards import generate_today_keyboard, tasks_keyboard
from ui.messages import tasks_list_message

def get_services(context: ContextTypes.DEFAULT_TYPE) -> ServiceManager:
    return context.bot_data["services"]

async def require_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[UserProgress]:
    """Пользователь из хранилища; если его ещё нет - подсказка про /start"""
    try:
        return await get_services(context).user_service.get_user(update.effective_user.id)
    except NotFoundError:
        await update.effective_message.reply_text("Сначала запустите программу: /start")
        return None

async def send_tasks(update: Update, context: ContextTypes.DEFAULT_TYPE, user: UserProgress,
                     tasks: List[TaskEntry], page: int = 0, edit: bool = False):
    """Показать список задач: новым сообщением или заменой текущего"""
    day = get_services(context).progression.current_day(user)
    text = tasks_list_message(tasks, day)
    markup = tasks_keyboard(tasks, page) if tasks else generate_today_keyboard()

    if edit and update.callback_query:
        try:
            await update.callback_query.edit_message_text(text, parse_mode=ParseMode.HTML, reply_markup=markup)
        except BadRequest as e:
            # Telegram отклоняет правку без изменений
            if "not modified" not in str(e).lower():
                raise
        return

    await update.effective_message.reply_text(text, parse_mode=ParseMode.HTML, reply_markup=markup)
