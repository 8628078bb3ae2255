"""Trial-session booking operations exposed to the LLM as function tools.

Each operation returns the text shown to the user. Create and reschedule
run the late-night ambiguity check before touching the ledger:

    Received -> ClarificationRequested            (nothing stored)
    Received -> Resolved -> Persisted -> Acknowledged
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from frontdesk.core.admin_notify import AdminNotifier
from frontdesk.core.ambiguity import clarification_prompt, requires_clarification
from frontdesk.core.bookings import STATUS_CANCELED, Booking, BookingLedger, normalize_phone
from frontdesk.core.tz_projection import format_utc_iso
from frontdesk.core.when_resolver import format_human_date, parse_local_plain, resolve_when, same_scheduled_moment

LOGGER = logging.getLogger(__name__)

TOOL_GET_UPCOMING = "get_upcoming_trial"
TOOL_BOOK = "book_trial"
TOOL_RESCHEDULE = "reschedule_trial"
TOOL_CANCEL = "cancel_trial"

BOOKING_TOOL_SPECS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": TOOL_GET_UPCOMING,
            "description": (
                "Вернёт ближайшую будущую пробную запись пользователя по userId "
                "(для показа перед отменой/переносом)."
            ),
            "parameters": {"type": "object", "properties": {}, "additionalProperties": False},
        },
    },
    {
        "type": "function",
        "function": {
            "name": TOOL_BOOK,
            "description": (
                "Забронировать пробное занятие. Вызови после того, как узнал имя, телефон и ДАТУ визита "
                "(время не требуется, по умолчанию 12:00). При обращениях поздно вечером/ночью и "
                "относительных формулировках сначала уточни календарную дату."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "phone": {"type": "string", "minLength": 5},
                    "when": {"type": "string", "minLength": 1},
                },
                "required": ["name", "phone", "when"],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": TOOL_RESCHEDULE,
            "description": (
                "Перенести (перезаписать) существующую пробную запись на новую дату. Время не обязательно "
                "(по умолчанию 12:00). При обращениях поздно вечером/ночью и относительных формулировках "
                "сначала уточни календарную дату."
            ),
            "parameters": {
                "type": "object",
                "properties": {"newWhen": {"type": "string", "minLength": 1}},
                "required": ["newWhen"],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": TOOL_CANCEL,
            "description": "Отменить пробную запись по userId.",
            "parameters": {
                "type": "object",
                "properties": {"when": {"type": "string", "minLength": 1}},
                "required": ["when"],
                "additionalProperties": False,
            },
        },
    },
]


class ToolArgumentError(ValueError):
    """Tool called with missing or malformed arguments."""


def _require_text(arguments: dict[str, Any], key: str, *, min_length: int = 1) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or len(value.strip()) < min_length:
        raise ToolArgumentError(f"{key} must be a string of at least {min_length} characters")
    return value.strip()


class TrialBookingTools:
    def __init__(
        self,
        ledger: BookingLedger,
        *,
        user_id: int,
        tz: ZoneInfo,
        notifier: AdminNotifier | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._ledger = ledger
        self._user_id = user_id
        self._tz = tz
        self._notifier = notifier
        self._now = now_provider or (lambda: datetime.now(timezone.utc))

    async def dispatch(self, tool_name: str, arguments: dict[str, Any]) -> str:
        if tool_name == TOOL_GET_UPCOMING:
            return await self.get_upcoming_trial()
        if tool_name == TOOL_BOOK:
            return await self.book_trial(
                name=_require_text(arguments, "name"),
                phone=_require_text(arguments, "phone", min_length=5),
                when=_require_text(arguments, "when"),
            )
        if tool_name == TOOL_RESCHEDULE:
            return await self.reschedule_trial(new_when=_require_text(arguments, "newWhen"))
        if tool_name == TOOL_CANCEL:
            return await self.cancel_trial(when=_require_text(arguments, "when"))
        raise ToolArgumentError(f"unknown tool {tool_name!r}")

    async def get_upcoming_trial(self) -> str:
        now = self._now()
        upcoming = []
        for booking in await self._ledger.load():
            if not self._owns(booking) or booking.is_canceled:
                continue
            scheduled = parse_local_plain(booking.when, self._tz)
            if scheduled is not None and scheduled > now:
                upcoming.append((scheduled, booking))
        if not upcoming:
            return "Будущих записей не найдено."
        upcoming.sort(key=lambda item: item[0])
        return f"Ваша ближайшая запись: {self._human(upcoming[0][1].when)}. Хотите отменить?"

    async def book_trial(self, name: str, phone: str, when: str) -> str:
        now = self._now()
        if requires_clarification(when, now=now, tz=self._tz):
            LOGGER.info("booking.clarify user_id=%s", self._user_id)
            return clarification_prompt(when, now=now, tz=self._tz)
        phone_normalized = normalize_phone(phone)
        existing = await self._ledger.load()
        if any(self._blocks_new_booking(booking, phone_normalized) for booking in existing):
            return (
                "Похоже, у вас уже есть запись на пробную тренировку. "
                "Если нужно изменить дату/время — напишите, я помогу."
            )
        resolved = resolve_when(when, now=now, tz=self._tz)
        if not resolved.is_resolved:
            LOGGER.warning("booking.unresolved_when user_id=%s; storing text as given", self._user_id)
        booking = Booking(
            user_id=self._user_id,
            name=name,
            phone=phone,
            phone_normalized=phone_normalized,
            when=resolved.local_plain,
            created_at=format_utc_iso(now),
        )
        await self._ledger.append(booking)
        LOGGER.info("booking.created user_id=%s", self._user_id)
        if self._notifier is not None:
            await self._notifier.booking_created(booking)
        return f"Запись создана: {name}, {phone}, {self._human(booking.when)}. Мы свяжемся для подтверждения."

    async def reschedule_trial(self, new_when: str) -> str:
        now = self._now()
        bookings = await self._ledger.load()
        candidates = [booking for booking in bookings if self._owns(booking) and not booking.is_canceled]
        if not candidates:
            return (
                "Не нашёл существующую пробную запись для переноса. "
                "Если у вас её ещё нет — могу оформить новую."
            )
        target = candidates[0]
        for candidate in candidates[1:]:
            if _created_at_key(candidate) >= _created_at_key(target):
                target = candidate
        old_when = target.when
        if requires_clarification(new_when, now=now, tz=self._tz):
            LOGGER.info("reschedule.clarify user_id=%s", self._user_id)
            return clarification_prompt(new_when, now=now, tz=self._tz)
        resolved = resolve_when(new_when, now=now, tz=self._tz)
        target.when = resolved.local_plain
        target.updated_at = format_utc_iso(now)
        await self._ledger.replace_all(bookings)
        LOGGER.info("booking.rescheduled user_id=%s", self._user_id)
        if self._notifier is not None:
            await self._notifier.booking_rescheduled(target, old_when)
        return f"Перенос выполнен: было «{self._human(old_when)}», стало «{self._human(target.when)}»."

    async def cancel_trial(self, when: str) -> str:
        now = self._now()
        bookings = await self._ledger.load()
        candidates = [booking for booking in bookings if self._owns(booking) and not booking.is_canceled]
        if not candidates:
            return "Не нашёл активных записей для отмены."
        resolved = resolve_when(when, now=now, tz=self._tz)
        target = next(
            (booking for booking in candidates if booking.when.strip() == resolved.local_plain.strip()),
            None,
        )
        if target is None:
            target = next(
                (
                    booking
                    for booking in candidates
                    if same_scheduled_moment(booking.when, resolved.local_plain, self._tz)
                ),
                None,
            )
        if target is None:
            return "Не удалось найти запись с указанной датой/временем. Уточните, пожалуйста."
        scheduled = parse_local_plain(target.when, self._tz)
        if scheduled is None or scheduled <= now:
            return "Эту запись уже нельзя отменить (кажется, время прошло)."
        target.status = STATUS_CANCELED
        target.canceled_at = format_utc_iso(now)
        await self._ledger.replace_all(bookings)
        LOGGER.info("booking.canceled user_id=%s", self._user_id)
        if self._notifier is not None:
            await self._notifier.booking_canceled(target)
        return f"Запись отменена: {self._human(target.when)}. Могу помочь выбрать новую дату."

    def _owns(self, booking: Booking) -> bool:
        return booking.user_id == self._user_id

    def _blocks_new_booking(self, booking: Booking, phone_normalized: str) -> bool:
        if booking.is_canceled:
            return False
        if self._owns(booking):
            return True
        existing_phone = normalize_phone(booking.phone_normalized or booking.phone)
        return bool(phone_normalized and existing_phone and existing_phone == phone_normalized)

    def _human(self, when: str) -> str:
        return format_human_date(when, self._tz) or when


def _created_at_key(booking: Booking) -> datetime:
    try:
        parsed = datetime.fromisoformat(booking.created_at.replace("Z", "+00:00"))
    except ValueError:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
