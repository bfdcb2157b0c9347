# ui/progress.py

from core.models import Tier

TIER_ICONS = {
    Tier.EASY: "💚",
    Tier.STANDARD: "💛",
    Tier.HARD: "❤️",
    Tier.MAGIC: "✨",
}

def progress_bar(percent: int, length: int = 10):
    """Текстовый progress bar с эмодзи настроения"""
    percent = max(0, min(100, percent))
    done = int(round(length * percent / 100))
    return "🟩" * done + "⬜️" * (length - done) + f" {progress_emoji(percent)} {percent}%"

def progress_emoji(percent: int) -> str:
    if percent == 0:
        return "😴"
    elif percent < 25:
        return "🌱"
    elif percent < 50:
        return "🚶"
    elif percent < 75:
        return "🏃"
    elif percent < 100:
        return "🔥"
    return "🎯"

def streak_emoji(streak: int):
    if streak >= 30:
        return "🏆"
    elif streak >= 7:
        return "🔥"
    elif streak >= 3:
        return "✨"
    else:
        return "🔹"
