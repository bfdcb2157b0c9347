#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FlowBot - точка входа
Telegram бот 15-дневной программы продуктивности
"""

import logging
import sys

from telegram import Update

from bot.application import build_application
from config import load_config
from core.models import FlowBotError
from services import ServiceManager
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

# ===== ГЛАВНАЯ ФУНКЦИЯ =====

def main():
    """Главная функция запуска бота"""
    try:
        config = load_config()
        config.ensure_directories()
        setup_logging(config)

        logger.info(f"⚙️ Конфигурация: {config.to_dict()}")

        services = ServiceManager.from_config(config)
        application = build_application(config, services)
    except (ValueError, FlowBotError) as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"❌ {e}")
        sys.exit(1)

    logger.info("🎯 Запуск polling...")
    application.run_polling(
        drop_pending_updates=True,
        allowed_updates=[Update.MESSAGE, Update.CALLBACK_QUERY],
    )

# ===== ТОЧКА ВХОДА =====

if __name__ == "__main__":
    main()
