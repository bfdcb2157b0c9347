# core/constants.py
"""
Константы программы FlowBot
Все пороги и коэффициенты программы в одном месте
"""

# Пороги разблокировки
STANDARD_UNLOCK_DAY = 6
HARD_UNLOCK_DAY = 11
MAGIC_UNLOCK_DAY = 16

# Длина основной программы (дни после неё - "дни потока")
PROGRAM_LENGTH = 15

# Весовые коэффициенты productivity_index
EASY_WEIGHT = 1
STANDARD_WEIGHT = 2
HARD_WEIGHT = 3
MAGIC_BONUS = 10

# Задачи
TASKS_PER_PAGE = 10
STATS_CAS_RETRIES = 3

# Метазадача планирования для дней 11+
PLANNING_TASK_TEXT = "📝 Составить и записать список из 5-10 сложных задач на сегодня"

# Время по умолчанию
DEFAULT_TIMEZONE = "Europe/Moscow"
DEFAULT_MORNING_HOUR = 8
DEFAULT_EVENING_HOUR = 21

# Названия коллекций в хранилище
USERS_TABLE = "users"
TASKS_TABLE = "tasks"
DAILY_STATS_TABLE = "daily_stats"
STREAKS_TABLE = "streaks"
CUSTOM_TASKS_TABLE = "custom_tasks"

# Милстоуны стрика для поздравлений
STREAK_MILESTONES = (3, 7, 14, 30)
