from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from core.constants import TASKS_PER_PAGE
from core.models import TaskEntry
from ui.progress import TIER_ICONS

MORNING_HOURS = (6, 7, 8, 9, 10, 11)

def _short(text: str, limit: int = 40) -> str:
    return text if len(text) <= limit else text[:limit - 1] + "…"

# Клавиатура задач: по 10 на страницу, кнопка переключает выполнение
def tasks_keyboard(tasks: List[TaskEntry], page: int = 0):
    pages = max(1, (len(tasks) + TASKS_PER_PAGE - 1) // TASKS_PER_PAGE)
    page = max(0, min(page, pages - 1))
    start = page * TASKS_PER_PAGE

    keyboard = []
    for number, task in enumerate(tasks[start:start + TASKS_PER_PAGE], start + 1):
        marker = "✅" if task.completed else TIER_ICONS[task.task_type]
        keyboard.append([
            InlineKeyboardButton(f"{marker} {number}. {_short(task.task_text)}",
                                 callback_data=f"task_toggle:{task.id}")
        ])

    if pages > 1:
        navigation = []
        if page > 0:
            navigation.append(InlineKeyboardButton("⬅️", callback_data=f"tasks_page:{page - 1}"))
        navigation.append(InlineKeyboardButton(f"{page + 1}/{pages}", callback_data=f"tasks_page:{page}"))
        if page < pages - 1:
            navigation.append(InlineKeyboardButton("➡️", callback_data=f"tasks_page:{page + 1}"))
        keyboard.append(navigation)

    return InlineKeyboardMarkup(keyboard)

def generate_today_keyboard():
    return InlineKeyboardMarkup([[InlineKeyboardButton("📋 Получить задачи", callback_data="generate_today")]])

# Выбор утреннего часа при онбординге
def morning_hour_keyboard():
    buttons = [InlineKeyboardButton(f"{hour:02d}:00", callback_data=f"onboard_morning:{hour}")
               for hour in MORNING_HOURS]
    return InlineKeyboardMarkup([buttons[:3], buttons[3:]])

def reset_confirm_keyboard():
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("✅ Да, сбросить", callback_data="confirm_reset"),
        InlineKeyboardButton("❌ Отмена", callback_data="cancel_reset"),
    ]])
