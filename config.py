#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FlowBot - Configuration
Централизованная конфигурация с валидацией
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum

import pytz
from dotenv import load_dotenv

from core.constants import (
    DEFAULT_TIMEZONE, DEFAULT_MORNING_HOUR, DEFAULT_EVENING_HOUR,
    HARD_UNLOCK_DAY, MAGIC_UNLOCK_DAY,
)
from core.models import LevelAdvanceMode

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

STORE_BACKENDS = ("memory", "json", "supabase")

@dataclass
class TelegramConfig:
    """Конфигурация Telegram бота"""
    bot_token: str
    admin_user_ids: List[int] = field(default_factory=list)

@dataclass
class StoreConfig:
    """Конфигурация хранилища"""
    backend: str = "json"
    data_file: Path = Path("data") / "flowbot_data.json"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

@dataclass
class ProgramConfig:
    """Параметры программы"""
    timezone: str = DEFAULT_TIMEZONE
    default_morning_hour: int = DEFAULT_MORNING_HOUR
    default_evening_hour: int = DEFAULT_EVENING_HOUR
    level_advance_mode: LevelAdvanceMode = LevelAdvanceMode.COMPLETION
    hard_unlock_day: int = HARD_UNLOCK_DAY
    magic_unlock_day: int = MAGIC_UNLOCK_DAY

@dataclass
class CacheConfig:
    """Короткоживущий кэш (/start, антифлуд)"""
    redis_url: Optional[str] = None
    start_dedupe_seconds: int = 5
    flood_interval_seconds: float = 1.0

def _parse_ids(raw: Optional[str]) -> List[int]:
    return [int(part) for part in (raw or "").replace(" ", "").split(",") if part]

class BotConfig:
    """Главный класс конфигурации"""

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self._env = os.environ if env is None else env
        self.errors: List[str] = []
        self._load_config()
        self._validate_config()

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._env.get(key)
        return default if value in (None, "") else value

    def _get_int(self, key: str, default: int) -> int:
        raw = self._get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            self.errors.append(f"{key} должен быть целым числом: {raw}")
            return default

    def _get_bool(self, key: str, default: bool) -> bool:
        return (self._get(key, str(default)) or "").lower() in ("1", "true", "yes")

    def _get_enum(self, key: str, enum_class, default):
        raw = self._get(key, default.value)
        try:
            return enum_class(raw)
        except ValueError:
            self.errors.append(f"{key} должен быть одним из: {[e.value for e in enum_class]}")
            return default

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""
        self.environment = self._get_enum('ENVIRONMENT', Environment, Environment.DEVELOPMENT)

        try:
            admin_ids = _parse_ids(self._get('ADMIN_USER_IDS'))
        except ValueError:
            self.errors.append("ADMIN_USER_IDS должен быть списком чисел через запятую")
            admin_ids = []

        self.telegram = TelegramConfig(
            bot_token=self._get('BOT_TOKEN', ''),
            admin_user_ids=admin_ids,
        )

        # Директории
        self.data_dir = Path(self._get('DATA_DIR', 'data'))
        self.log_dir = Path(self._get('LOG_DIR', 'logs'))

        self.store = StoreConfig(
            backend=(self._get('STORE_BACKEND', 'json') or '').lower(),
            data_file=self.data_dir / "flowbot_data.json",
            supabase_url=self._get('SUPABASE_URL'),
            supabase_key=self._get('SUPABASE_KEY'),
        )

        self.program = ProgramConfig(
            timezone=self._get('TIMEZONE', DEFAULT_TIMEZONE),
            default_morning_hour=self._get_int('DEFAULT_MORNING_HOUR', DEFAULT_MORNING_HOUR),
            default_evening_hour=self._get_int('DEFAULT_EVENING_HOUR', DEFAULT_EVENING_HOUR),
            level_advance_mode=self._get_enum('LEVEL_ADVANCE_MODE', LevelAdvanceMode, LevelAdvanceMode.COMPLETION),
            hard_unlock_day=self._get_int('HARD_UNLOCK_DAY', HARD_UNLOCK_DAY),
            magic_unlock_day=self._get_int('MAGIC_UNLOCK_DAY', MAGIC_UNLOCK_DAY),
        )

        self.cache = CacheConfig(
            redis_url=self._get('REDIS_URL'),
            start_dedupe_seconds=self._get_int('START_DEDUPE_SECONDS', 5),
        )

        # Логирование
        self.log_level = self._get_enum('LOG_LEVEL', LogLevel, LogLevel.INFO)
        self.log_to_file = self._get_bool('LOG_TO_FILE', True)
        self.log_format = self._get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = self.errors

        if self.store.backend not in STORE_BACKENDS:
            errors.append(f"STORE_BACKEND должен быть одним из: {list(STORE_BACKENDS)}")

        if self.store.backend == "supabase" and not (self.store.supabase_url and self.store.supabase_key):
            errors.append("Для STORE_BACKEND=supabase нужны SUPABASE_URL и SUPABASE_KEY")

        if self.program.timezone not in pytz.all_timezones_set:
            errors.append(f"Неизвестный часовой пояс TIMEZONE: {self.program.timezone}")

        for name in ('default_morning_hour', 'default_evening_hour'):
            if not 0 <= getattr(self.program, name) <= 23:
                errors.append(f"{name.upper()} должен быть от 0 до 23")

        if self.program.hard_unlock_day < 1 or self.program.magic_unlock_day < self.program.hard_unlock_day:
            errors.append("Должно выполняться 1 <= HARD_UNLOCK_DAY <= MAGIC_UNLOCK_DAY")

        if self.cache.start_dedupe_seconds < 0:
            errors.append("START_DEDUPE_SECONDS не может быть отрицательным")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def require_bot_token(self) -> str:
        """Токен нужен только для запуска бота, не для скриптов и тестов"""
        token = self.telegram.bot_token
        if not token:
            raise ValueError("Обязательная переменная окружения BOT_TOKEN не найдена!")
        if ':' not in token:
            raise ValueError("BOT_TOKEN имеет неверный формат")
        return token

    def ensure_directories(self):
        """Создание необходимых директорий"""
        for directory in (self.data_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        quiet = {
            name: {'level': 'WARNING', 'handlers': handlers, 'propagate': False}
            for name in ('httpx', 'telegram', 'apscheduler')
        }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                },
                'file': {
                    'class': 'logging.handlers.RotatingFileHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'filename': str(self.log_dir / f"flowbot_{self.environment.value}.log"),
                    'maxBytes': 10485760,  # 10MB
                    'backupCount': 5,
                    'encoding': 'utf-8',
                    'delay': True
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                **quiet
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь (без секретов)"""
        token = self.telegram.bot_token
        return {
            'environment': self.environment.value,
            'bot_token': token[:10] + "..." if token else None,
            'admin_user_ids': self.telegram.admin_user_ids,
            'store_backend': self.store.backend,
            'timezone': self.program.timezone,
            'level_advance_mode': self.program.level_advance_mode.value,
            'redis': bool(self.cache.redis_url),
            'log_level': self.log_level.value,
        }

def load_config(env_file: Optional[str] = None) -> BotConfig:
    """Прочитать .env (если есть) и собрать конфигурацию"""
    load_dotenv(env_file)
    config = BotConfig()
    logging.getLogger(__name__).debug(f"⚙️ Конфигурация: {config.to_dict()}")
    return config

__all__ = [
    'BotConfig',
    'Environment',
    'LogLevel',
    'TelegramConfig',
    'StoreConfig',
    'ProgramConfig',
    'CacheConfig',
    'load_config',
]
