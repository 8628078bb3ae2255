from __future__ import annotations

import logging
from typing import Any

from frontdesk.core.bookings import Booking
from frontdesk.infra.messaging import safe_send_bot_text

LOGGER = logging.getLogger(__name__)


class AdminNotifier:
    """Sends booking events to the club admin chat. A failed send never
    breaks the user's booking flow."""

    def __init__(self, bot: Any, admin_chat_id: int | None) -> None:
        self._bot = bot
        self._admin_chat_id = admin_chat_id

    @property
    def enabled(self) -> bool:
        return self._bot is not None and self._admin_chat_id is not None

    async def booking_created(self, booking: Booking) -> None:
        await self._send(
            "booking",
            [
                "Новая запись на пробное занятие:",
                f"Имя: {booking.name}",
                f"Телефон: {booking.phone}",
                f"Когда: {booking.when}",
                f"Telegram id: {booking.user_id}",
            ],
        )

    async def booking_rescheduled(self, booking: Booking, old_when: str) -> None:
        await self._send(
            "reschedule",
            [
                "Перенос пробной тренировки:",
                f"Имя: {booking.name}",
                f"Телефон: {booking.phone}",
                f"Было: {old_when}",
                f"Стало: {booking.when}",
                f"Telegram id: {booking.user_id}",
            ],
        )

    async def booking_canceled(self, booking: Booking) -> None:
        await self._send(
            "cancel",
            [
                "Отмена пробной тренировки:",
                f"Имя: {booking.name}",
                f"Телефон: {booking.phone}",
                f"Когда: {booking.when}",
                f"Telegram id: {booking.user_id}",
            ],
        )

    async def _send(self, kind: str, lines: list[str]) -> None:
        if not self.enabled:
            return
        try:
            await safe_send_bot_text(self._bot, self._admin_chat_id, "\n".join(lines))
        except Exception:
            LOGGER.exception("Admin notify failed kind=%s chat_id=%s", kind, self._admin_chat_id)
