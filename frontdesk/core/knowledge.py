from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from frontdesk.core.tz_projection import format_now_ru, weekday_name_ru

LOGGER = logging.getLogger(__name__)

CLUB_NAME = "IronPulse"
CLUB_CONTACTS = "+7 (495) 555-55-55, info@ironpulse.ru"


def load_knowledge_document(path: Path) -> str:
    """Read the club document injected into every system prompt."""
    text = path.read_text(encoding="utf-8")
    LOGGER.info("Knowledge document loaded path=%s chars=%s", path, len(text))
    return text


def build_system_prompt(doc_text: str, *, now: datetime, tz: ZoneInfo) -> str:
    return "".join(
        [
            f"Ты — ИИ‑администратор фитнес‑клуба {CLUB_NAME}. ",
            "Отвечай кратко, точно и дружелюбно, только на русском. ",
            "Используй ТОЛЬКО информацию из документа ниже. ",
            f"Если ответа нет в документе, так и скажи и предложи связаться: {CLUB_CONTACTS}. ",
            "Форматируй ключевые списки пунктами. ",
            "Не используй Markdown или HTML и не добавляй преамбулы. Можешь использовать эмодзи. ",
            f"Текущая дата и время ({tz.key}): {format_now_ru(now, tz)}. Сегодня: {weekday_name_ru(now, tz)}. ",
            'Для выражений "сегодня/завтра/в пятницу" всегда считай от текущей даты. ',
            "Если пользователь хочет записаться на пробное занятие или соглашается на предложение, "
            "последовательно спроси недостающие данные: имя, телефон, дата визита. Время НЕ спрашивай. "
            "Если время не указано — используй 12:00 локального времени. После того, как всё собрано, "
            "вызови инструмент book_trial. Не выдумывай данные. ",
            "Если пользователь хочет перенести пробную запись, уточни новую дату (время — по желанию "
            "пользователя; если не указал, используй 12:00) и вызови инструмент reschedule_trial.\n\n",
            "Ночное уточнение: если пользователь пишет поздно вечером или ночью (примерно 22:00–04:00 "
            "местного времени) и использует относительные выражения (сегодня/завтра/послезавтра/"
            "в [день недели]) без календарной даты, ОБЯЗАТЕЛЬНО уточни календарную дату в формате "
            "ДД.ММ.ГГГГ перед бронированием/переносом.\n\n",
            "Если пользователь хочет отменить пробную запись, сначала получи ближайшую будущую запись "
            "через get_upcoming_trial и покажи её пользователю. Затем спроси подтверждение отмены. "
            "При подтверждении вызови cancel_trial с точным when. Отменять можно только будущие записи. "
            "После отмены можно записаться снова. Для поиска и управления записями используй userId, "
            "телефон не запрашивай.\n\n",
            "Документ:\n",
            doc_text,
        ]
    )
