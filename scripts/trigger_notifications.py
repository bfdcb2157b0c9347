#!/usr/bin/env python3
"""
Ручной запуск утренней/вечерней рассылки за указанный час
Использование: python scripts/trigger_notifications.py [--hour HOUR] [--only morning|evening]
"""

import sys
import asyncio
import argparse
import json
import logging
from pathlib import Path

# Добавляем корневую папку в Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from telegram import Bot

from config import load_config
from services import ServiceManager
from services.notifications import NotificationService
from utils.datetime_utils import current_hour
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

async def trigger(config, hour: int, only: str = None) -> dict:
    services = ServiceManager.from_config(config)
    bot = Bot(config.require_bot_token())

    try:
        async with bot:
            notifications = NotificationService(
                bot,
                services.progression,
                services.user_service,
                services.task_service,
                tz_name=config.program.timezone,
            )
            if only == "morning":
                return {"morning": await notifications.send_morning_tasks(hour)}
            if only == "evening":
                return {"evening": await notifications.send_evening_summaries(hour)}
            return await notifications.run_hourly_check(hour)
    finally:
        await services.close_services()

def main():
    """Главная функция запуска"""
    parser = argparse.ArgumentParser(description='Ручной запуск рассылки FlowBot')
    parser.add_argument('--hour', type=int, help='Час рассылки 0-23 (по умолчанию текущий)')
    parser.add_argument('--only', choices=['morning', 'evening'], help='Только одна из рассылок')
    args = parser.parse_args()

    config = load_config()
    setup_logging(config)

    hour = current_hour(config.program.timezone) if args.hour is None else args.hour
    if not 0 <= hour <= 23:
        parser.error("--hour должен быть от 0 до 23")

    try:
        report = asyncio.run(trigger(config, hour, args.only))
    except KeyboardInterrupt:
        logger.info("👋 Прервано")
        sys.exit(1)

    print(json.dumps(report, ensure_ascii=False, indent=2))

if __name__ == "__main__":
    main()
