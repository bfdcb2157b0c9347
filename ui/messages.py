# ui/messages.py
"""Тексты сообщений бота (parse_mode=HTML)"""

from html import escape
from typing import List

from core.constants import PROGRAM_LENGTH, STREAK_MILESTONES
from core.models import DayStatistics, StreakRecord, TaskEntry, Tier, TIER_ORDER, UserProgress
from ui.progress import TIER_ICONS, progress_bar, streak_emoji

GENERIC_ERROR = "😔 Что-то пошло не так. Попробуйте позже."

TIER_TITLES = {
    Tier.EASY: "Простые задачи",
    Tier.STANDARD: "Средние задачи",
    Tier.HARD: "Сложные задачи",
    Tier.MAGIC: "Магическая задача",
}

def welcome_message(user: UserProgress):
    return (
        f"Привет, {escape(user.display_name)}! 👋\n\n"
        f"Это FlowBot - программа из {PROGRAM_LENGTH} дней, которая шаг за шагом "
        "приводит в состояние потока.\n\n"
        "Каждое утро ты получаешь список задач. Начинаем с простых, "
        "потом добавляются средние и сложные.\n\n"
        "⏰ <b>Во сколько присылать задачи по утрам?</b>"
    )

def welcome_back_message(user: UserProgress, day: int):
    return f"С возвращением, {escape(user.display_name)}! 👋\n{day_title(day)}"

def day_title(day: int) -> str:
    if day <= PROGRAM_LENGTH:
        return f"📅 День {day} из {PROGRAM_LENGTH}"
    return f"🌊 День {day} (бонусный день потока)"

def tasks_list_message(tasks: List[TaskEntry], day: int):
    if not tasks:
        return "На сегодня задач пока нет. Нажмите «Получить задачи» 👇"

    completed = sum(1 for task in tasks if task.completed)
    percent = round(completed / len(tasks) * 100)

    lines = [f"<b>{day_title(day)}</b>", "", f"Прогресс: {completed}/{len(tasks)}", progress_bar(percent)]

    numbers = {task.id: index for index, task in enumerate(tasks, 1)}

    for tier in TIER_ORDER:
        group = [task for task in tasks if task.task_type is tier]
        if not group:
            continue
        lines.append("")
        lines.append(f"{TIER_ICONS[tier]} <b>{TIER_TITLES[tier]}:</b>")
        for task in group:
            marker = "✅" if task.completed else "⬜️"
            lines.append(f"{numbers[task.id]}. {marker} {escape(task.task_text)}")

    return "\n".join(lines)

def task_toggled_message(task: TaskEntry) -> str:
    if not task.completed:
        return "↩️ Отметка снята"
    if task.task_type is Tier.MAGIC:
        return "✨ Магия!"
    return "✅ Выполнено!"

def stats_message(stats: DayStatistics, streak: StreakRecord, user: UserProgress, day: int):
    return (
        f"📊 <b>Статистика дня</b> ({day_title(day)})\n\n"
        f"Выполнено: {stats.completed_tasks}/{stats.total_tasks}\n"
        f"{progress_bar(stats.flow_score)}\n\n"
        f"💚 Простых: {stats.easy_completed}\n"
        f"💛 Средних: {stats.standard_completed}\n"
        f"❤️ Сложных: {stats.hard_completed}\n"
        f"✨ Магическая: {'✅' if stats.magic_completed else '❌'}\n\n"
        f"🔥 Flow Score: {stats.flow_score}%\n"
        f"⚡ Баллы продуктивности: {stats.productivity_index}\n\n"
        f"{streak_message(streak)}\n"
        f"🏅 Лучший стрик: {streak.longest_streak}\n"
        f"📆 Всего завершённых дней: {streak.total_days}\n"
        f"⭐ Уровень: {user.level}"
    )

def streak_message(streak: StreakRecord):
    return f"{streak_emoji(streak.current_streak)} Стрик: <b>{streak.current_streak}</b> дней подряд"

def day_completed_message(stats: DayStatistics, streak: StreakRecord, new_level: int):
    text = (
        "🎉 <b>Все задачи дня выполнены!</b>\n\n"
        "⚡ Ты в состоянии потока.\n\n"
        f"🔥 Flow Score: {stats.flow_score}%\n"
        f"⚡ Баллы продуктивности: {stats.productivity_index}\n"
        f"{streak_message(streak)}\n"
        f"⭐ Уровень: {new_level}"
    )
    if streak.current_streak in STREAK_MILESTONES:
        text += f"\n\n🏆 Серия из {streak.current_streak} дней! Так держать!"
    return text

def morning_message(user: UserProgress, tasks: List[TaskEntry], day: int):
    return f"🌅 Доброе утро, {escape(user.display_name)}!\n\n" + tasks_list_message(tasks, day)

def evening_message(user: UserProgress, stats: DayStatistics, streak: StreakRecord):
    text = (
        "🌙 <b>Вечерняя рефлексия</b>\n\n"
        f"📊 Сегодня выполнено: {stats.completed_tasks}/{stats.total_tasks} задач ({stats.flow_score}%)\n"
        f"🔥 Стрик: {streak.current_streak} дней\n\n"
    )
    if stats.day_completed:
        text += "🎉 <b>Отлично! Все задачи закрыты!</b>\nПродолжай в том же духе 💪"
    else:
        text += (
            "⚠️ <b>Важно закрывать все задачи!</b>\n"
            "Помни: главное не скорость, а регулярность. 💪"
        )
    return text

def help_message():
    return (
        "<b>Команды FlowBot</b>\n\n"
        "/start - начать программу\n"
        "/tasks - задачи на сегодня\n"
        "/regenerate - пересоздать задачи на сегодня\n"
        "/stats - статистика дня и стрик\n"
        "/add &lt;текст&gt; - добавить свою сложную задачу\n"
        "/settime &lt;утро&gt; &lt;вечер&gt; - время уведомлений\n"
        "/reset - начать программу заново\n"
        "/help - эта справка"
    )

def reset_confirm_message():
    return (
        "⚠️ <b>Сбросить прогресс?</b>\n\n"
        "Уровень вернётся к 1, задачи и стрик будут удалены. Отменить это нельзя."
    )
