# handlers/router.py

from telegram.ext import Application

# Импорт всех нужных обработчиков (команды, callbacks)
from handlers.commands.basic import register_basic_handlers
from handlers.commands.tasks import register_task_handlers
from handlers.commands.analytics import register_analytics_handlers
from handlers.commands.settings import register_settings_handlers
from handlers.commands.admin import register_admin_handlers

from handlers.callbacks.tasks import register_tasks_callbacks
from handlers.callbacks.settings import register_settings_callbacks

def register_handlers(application: Application):
    """Подключает все обработчики в Application"""
    register_basic_handlers(application)
    register_task_handlers(application)
    register_analytics_handlers(application)
    register_settings_handlers(application)
    register_admin_handlers(application)

    register_tasks_callbacks(application)
    register_settings_callbacks(application)
