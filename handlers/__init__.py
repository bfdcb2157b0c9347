"""
FlowBot - обработчики Telegram
Команды и callbacks
"""

from .router import register_handlers

__all__ = ['register_handlers']
