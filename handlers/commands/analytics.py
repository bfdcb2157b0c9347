# handlers/commands/analytics.py

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from handlers.utils import get_services, require_user
from ui.messages import stats_message
from utils.decorators import safe_handler

@safe_handler
async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = await require_user(update, context)
    if user is None:
        return

    services = get_services(context)
    stats = await services.progression.get_daily_stats(user.user_id)
    streak = await services.user_service.get_streak(user.user_id)
    day = services.progression.current_day(user)

    await update.message.reply_html(stats_message(stats, streak, user, day))

def register_analytics_handlers(application: Application):
    application.add_handler(CommandHandler("stats", stats_command))
