from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

LOGGER = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_CANCELED = "canceled"

# Column order of the spreadsheet and key names of the JSON file.
SHEET_HEADER = [
    "userId",
    "name",
    "phone",
    "phoneNormalized",
    "when",
    "createdAt",
    "updatedAt",
    "status",
    "canceledAt",
]

_FIELD_BY_KEY = {
    "userId": "user_id",
    "name": "name",
    "phone": "phone",
    "phoneNormalized": "phone_normalized",
    "when": "when",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "status": "status",
    "canceledAt": "canceled_at",
}


@dataclass
class Booking:
    user_id: int | str
    name: str
    phone: str
    phone_normalized: str
    when: str
    created_at: str
    updated_at: str | None = None
    status: str = STATUS_ACTIVE
    canceled_at: str | None = None

    @property
    def is_canceled(self) -> bool:
        return self.status == STATUS_CANCELED

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {}
        for key, attr in _FIELD_BY_KEY.items():
            value = getattr(self, attr)
            if value is not None:
                record[key] = value
        return record

    def to_row(self) -> list[str]:
        record = self.to_record()
        return ["" if record.get(key) is None else str(record[key]) for key in SHEET_HEADER]

    @classmethod
    def from_record(cls, record: dict[str, object]) -> Booking:
        values: dict[str, object] = {}
        for key, attr in _FIELD_BY_KEY.items():
            value = record.get(key)
            if value in (None, "") and attr in {"updated_at", "canceled_at"}:
                value = None
            values[attr] = value
        values["user_id"] = _coerce_user_id(values["user_id"])
        for attr in ("name", "phone", "phone_normalized", "when", "created_at"):
            values[attr] = "" if values[attr] is None else str(values[attr])
        values["status"] = str(values["status"] or STATUS_ACTIVE)
        return cls(**values)

    @classmethod
    def from_row(cls, header: list[str], row: list[str]) -> Booking:
        record = {column: row[index] if index < len(row) else "" for index, column in enumerate(header)}
        return cls.from_record(record)


def _coerce_user_id(value: object) -> int | str:
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return value
    text = "" if value is None else str(value).strip()
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    return text


def normalize_phone(phone: str | None) -> str:
    if not phone:
        return ""
    digits = re.sub(r"\D+", "", str(phone))
    if len(digits) == 11 and digits[0] in {"7", "8"}:
        return "7" + digits[1:]
    if len(digits) == 10:
        return "7" + digits
    return digits


class BookingBackend(Protocol):
    name: str

    async def load(self) -> list[Booking]:
        ...

    async def append(self, booking: Booking) -> None:
        ...

    async def replace_all(self, bookings: list[Booking]) -> None:
        ...


class BookingLedger:
    """Booking persistence: primary backend first, file store on failure.

    Load-modify-save is not transactional; two overlapping operations on
    the same user can lose an update.
    """

    def __init__(self, fallback: BookingBackend, primary: BookingBackend | None = None) -> None:
        self._primary = primary
        self._fallback = fallback

    @property
    def has_primary(self) -> bool:
        return self._primary is not None

    async def load(self) -> list[Booking]:
        if self._primary is not None:
            try:
                return await self._primary.load()
            except Exception:
                LOGGER.exception("bookings.load failed backend=%s; using %s", self._primary.name, self._fallback.name)
        return await self._fallback.load()

    async def append(self, booking: Booking) -> None:
        if self._primary is not None:
            try:
                await self._primary.append(booking)
                return
            except Exception:
                LOGGER.exception("bookings.append failed backend=%s; using %s", self._primary.name, self._fallback.name)
        try:
            await self._fallback.append(booking)
        except OSError:
            LOGGER.exception("Failed to persist booking backend=%s", self._fallback.name)

    async def replace_all(self, bookings: list[Booking]) -> None:
        if self._primary is not None:
            try:
                await self._primary.replace_all(bookings)
                return
            except Exception:
                LOGGER.exception("bookings.save failed backend=%s; using %s", self._primary.name, self._fallback.name)
        try:
            await self._fallback.replace_all(bookings)
        except OSError:
            LOGGER.exception("Failed to save bookings backend=%s", self._fallback.name)