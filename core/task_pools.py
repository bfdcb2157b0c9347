# core/task_pools.py
"""
Статические пулы задач FlowBot.

Каждая задача помечена категорией при написании; detect_category нужна только
для текстов без категории (например, написанных пользователем).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.models import TaskCategory

@dataclass(frozen=True)
class PoolTask:
    """Кандидат в задачи дня"""
    text: str
    category: TaskCategory
    custom_task_id: Optional[int] = None

def _tagged(groups: Dict[TaskCategory, List[str]]) -> Tuple[PoolTask, ...]:
    return tuple(PoolTask(text, category) for category, texts in groups.items() for text in texts)

# Простые задачи - быстрые действия на 1-2 минуты
EASY_POOL = _tagged({
    TaskCategory.PHYSICAL: [
        "Выпить стакан воды", "Сделать 5 глубоких вдохов", "Потянуться на 30 секунд",
        "Сделать 10 прыжков на месте", "Встать и сесть 5 раз", "Повращать шеей и плечами",
        "Сжать и разжать кулаки 10 раз", "Походить по комнате 2 минуты", "Сделать 10 приседаний",
        "Покачать головой влево-вправо", "Потрясти руками и ногами", "Зевнуть 5 раз подряд",
        "Сделать планку 30 секунд", "Покрутить кистями рук", "Сделать 5 отжиманий от стены",
        "Помассировать виски", "Потереть ладони друг о друга", "Сделать 3 наклона вперед",
        "Постоять на одной ноге 30 секунд", "Сделать круговые движения плечами",
    ],
    TaskCategory.MENTAL: [
        "Назвать 5 благодарностей", "Вспомнить хорошее воспоминание детства", "Помедитировать 1 минуту",
        "Сказать себе 3 комплимента", "Подумать о завтрашних планах", "Вспомнить любимое место",
        "Посчитать от 100 до 1 через 7", "Назвать 10 городов на букву С", "Вспомнить любимое блюдо",
        "Подумать о трех хороших событиях вчера", "Представить идеальный выходной", "Вспомнить смешную историю",
        "Назвать 5 цветов радуги", "Подумать о любимом фильме", "Вспомнить школьного друга",
        "Представить себя через 5 лет", "Подумать об интересной книге", "Вспомнить приятный запах",
        "Назвать 3 своих сильных качества", "Подумать о мечте",
    ],
    TaskCategory.CREATIVE: [
        "Нарисовать смайлик на бумаге", "Сфотографировать что-то красивое", "Придумать рифму к своему имени",
        "Напеть любимую мелодию", "Написать одно предложение-историю", "Сложить оригами журавлика",
        "Нарисовать домик с трубой", "Сочинить двустишие о погоде", "Изобразить животное жестами",
        "Написать имя красивыми буквами", "Придумать название для кафе", "Нарисовать сердечко",
        "Сочинить короткую песенку", "Изобразить эмоцию мимикой", "Придумать стишок из 2-х строчек",
    ],
    TaskCategory.SOCIAL: [
        "Улыбнуться себе в зеркале", "Отправить смайлик близкому", "Поблагодарить кого-то мысленно",
        "Помахать рукой отражению", "Сказать 'доброе утро' вслух", "Послать воздушный поцелуй",
        "Обнять домашнее животное или подушку", "Сказать комплимент растению", "Поблагодарить свой телефон",
        "Улыбнуться фотографии близкого человека",
    ],
    TaskCategory.HOUSEHOLD: [
        "Протереть экран телефона", "Поставить что-то на зарядку", "Открыть окно на 1 минуту",
        "Застелить кровать", "Полить растение", "Посмотреть на часы",
        "Включить приятную музыку", "Выключить ненужный свет", "Поправить одну вещь на столе",
        "Почистить зубы", "Расчесать волосы", "Проверить погоду за окном",
        "Протереть одну поверхность", "Сложить одну вещь на место", "Выбросить один ненужный предмет",
    ],
})

# Средние задачи - активности на 5-15 минут
STANDARD_POOL = _tagged({
    TaskCategory.PHYSICAL: [
        "Сделать 15-минутную зарядку", "Прогуляться 10 минут на свежем воздухе", "Сделать полную растяжку",
        "Подняться по лестнице 3 этажа", "Потанцевать под 3 любимые песни", "Сделать планку 2 минуты",
        "Выполнить комплекс упражнений для спины", "Сделать 50 приседаний", "Попрыгать на скакалке 5 минут",
        "Сделать йога-комплекс 'Приветствие солнцу'", "Выполнить дыхательную гимнастику", "Сделать упражнения для глаз",
        "Покататься на велосипеде 15 минут", "Поплавать или принять контрастный душ", "Сделать массаж рук и ног",
    ],
    TaskCategory.MENTAL: [
        "Прочитать одну главу интересной книги", "Изучить 20 новых слов иностранного языка", "Решить 10 логических задач",
        "Посмотреть TED-видео на интересную тему", "Написать подробный план на завтра", "Изучить что-то новое в Wikipedia",
        "Пройти урок онлайн-курса", "Выучить стихотворение наизусть", "Решить кроссворд или судоку",
        "Изучить новую технологию 15 минут", "Почитать статьи по интересующей теме", "Повторить таблицу умножения",
        "Изучить историю одного изобретения", "Почитать биографию известной личности", "Изучить новые функции телефона",
    ],
    TaskCategory.CREATIVE: [
        "Нарисовать пейзаж из окна акварелью", "Написать короткое стихотворение о настроении", "Сочинить мелодию на инструменте",
        "Создать коллаж из старых журналов", "Написать рассказ на 200 слов", "Сделать поделку из природных материалов",
        "Сфотографировать 10 красивых моментов", "Записать голосовое сообщение-песню", "Нарисовать портрет домашнего питомца",
        "Сделать оригами сложной фигуры", "Написать письмо в будущее", "Создать презентацию о своем хобби",
        "Снять короткое видео о дне", "Написать обзор любимого фильма", "Создать плейлист под настроение",
    ],
    TaskCategory.SOCIAL: [
        "Позвонить родственнику и поговорить 15 минут", "Написать длинное письмо старому другу", "Оставить 5 позитивных комментариев",
        "Познакомиться с новым человеком", "Помочь кому-то решить задачу", "Организовать видеозвонок с друзьями",
        "Написать благодарственное письмо учителю", "Поделиться полезной информацией в соцсетях", "Найти и написать новому интересному человеку",
        "Записаться волонтером на мероприятие", "Похвалить коллегу за работу", "Организовать совместную прогулку",
        "Подарить неожиданный комплимент незнакомцу", "Написать отзыв о хорошем сервисе", "Поддержать друга в трудной ситуации",
    ],
})

# Сложные задачи только пользовательские: пул намеренно пуст
HARD_POOL: Tuple[PoolTask, ...] = ()

# Магические задачи - события, зависящие от удачи
MAGIC_POOL = tuple(PoolTask(text, TaskCategory.SOCIAL) for text in (
    "Найти деньги или монетку на дороге", "Получить искренний комплимент от незнакомца",
    "Встретить старого знакомого в неожиданном месте", "Услышать любимую песню по радио или в общественном месте",
    "Увидеть радугу, красивый закат или необычное природное явление", "Получить хорошие новости по телефону или сообщению",
    "Найти давно потерянную вещь", "Получить неожиданный подарок или сюрприз", "Увидеть редкое или необычное животное",
    "Познакомиться с интересным и приятным человеком", "Получить скидку или бонус в магазине",
    "Выиграть приз в лотерее или розыгрыше", "Получить бескорыстную помощь от незнакомца", "Увидеть падающую звезду или самолет в небе",
    "Получить место в транспорте когда очень устал", "Попасть на зеленый свет на всех перекрестках", "Встретить человека в точно такой же одежде",
    "Найти идеальную парковку в нужном месте", "Получить неожиданное приглашение на интересное мероприятие", "Увидеть двойную радугу",
))

@dataclass(frozen=True)
class TaskPools:
    """Набор пулов по уровням сложности"""
    easy: Tuple[PoolTask, ...] = EASY_POOL
    standard: Tuple[PoolTask, ...] = STANDARD_POOL
    hard: Tuple[PoolTask, ...] = HARD_POOL
    magic: Tuple[PoolTask, ...] = MAGIC_POOL

DEFAULT_POOLS = TaskPools()

# Ключевые слова категорий; порядок проверки важен
CATEGORY_KEYWORDS: Tuple[Tuple[TaskCategory, Tuple[str, ...]], ...] = (
    (TaskCategory.PHYSICAL, (
        "выпить", "сделать", "потянуть", "прыж", "встать", "повращать", "сжать", "походить",
        "присед", "планк", "отжим", "массаж", "зарядк", "прогул", "растяжк", "танцев", "бег",
        "велосипед", "плавать", "душ",
    )),
    (TaskCategory.MENTAL, (
        "назвать", "вспомнить", "медит", "комплимент", "подумать", "считать", "прочитать",
        "изучить", "решить", "видео", "план", "курс", "стих", "кроссворд", "судоку", "слов",
        "благодарност",
    )),
    (TaskCategory.CREATIVE, (
        "нарисовать", "написать", "сочинить", "сфотографировать", "придумать", "оригами",
        "мелодия", "рифма", "коллаж", "рассказ", "поделка", "акварель", "стихотворение", "снять",
        "обзор", "плейлист", "смайлик", "рисовать",
    )),
    (TaskCategory.SOCIAL, (
        "позвонить", "отправить", "познакомиться", "помочь", "организовать", "встреча", "друг",
        "друзья", "коллега", "родственник", "комментарий", "письмо", "улыбнуться", "обнять",
        "поблагодарить",
    )),
    (TaskCategory.HOUSEHOLD, (
        "протереть", "поставить", "открыть", "застелить", "полить", "включить", "выключить",
        "поправить", "почистить", "расчесать", "погода", "дом", "комната", "покупки", "уборка",
        "порядок", "сложить", "выбросить",
    )),
)

def detect_category(text: str) -> TaskCategory:
    """Категория по ключевым словам; без совпадений - ментальная"""
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return TaskCategory.MENTAL
