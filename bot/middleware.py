from telegram import Update
from telegram.ext import Application, ApplicationHandlerStop, ContextTypes, TypeHandler
import logging

logger = logging.getLogger(__name__)

# === Anti-flood: группа -1 срабатывает раньше всех обработчиков ===

class AntiFlood:
    def __init__(self, cache, rate_limit_seconds: float = 1.0):
        self.cache = cache
        self.rate_limit_seconds = rate_limit_seconds

    async def __call__(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        # Нажатия на кнопки задач не ограничиваются, только сообщения
        if not update.message or not update.effective_user:
            return

        user_id = update.effective_user.id
        if not await self.cache.add(f"flood:{user_id}", self.rate_limit_seconds):
            logger.info(f"🚫 Пользователь {user_id} флудит, сообщение пропущено")
            raise ApplicationHandlerStop

def setup_middlewares(application: Application, cache, rate_limit_seconds: float = 1.0):
    application.add_handler(TypeHandler(Update, AntiFlood(cache, rate_limit_seconds)), group=-1)
