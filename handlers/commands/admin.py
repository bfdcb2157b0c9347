"""
Admin commands
Админские команды
"""

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from utils.datetime_utils import current_hour
from utils.decorators import admin_only, safe_handler

def _format_report(part: str, report: dict) -> str:
    return (
        f"{part}: отправлено {report['sent']}, "
        f"пропущено {report['skipped']}, ошибок {report['failed']}"
    )

@safe_handler
@admin_only
async def trigger_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Команда /trigger [час] - ручной запуск рассылки за указанный час"""
    notifications = context.bot_data["notifications"]

    if context.args:
        try:
            hour = int(context.args[0])
        except ValueError:
            hour = -1
        if not 0 <= hour <= 23:
            await update.message.reply_text("Использование: /trigger <час 0-23>")
            return
    else:
        hour = current_hour(notifications.tz_name)

    result = await notifications.run_hourly_check(hour)

    await update.message.reply_html(
        f"📢 <b>Рассылка за {hour:02d}:00 завершена</b>\n\n"
        f"{_format_report('🌅 Утро', result['morning'])}\n"
        f"{_format_report('🌙 Вечер', result['evening'])}"
    )

def register_admin_handlers(application: Application):
    application.add_handler(CommandHandler("trigger", trigger_command))
