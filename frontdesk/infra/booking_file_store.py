from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from frontdesk.core.bookings import Booking

LOGGER = logging.getLogger(__name__)

DEFAULT_BOOKINGS_PATH = Path("bookings.json")


class BookingFileStore:
    name = "file"

    def __init__(self, path: Path = DEFAULT_BOOKINGS_PATH) -> None:
        self._path = path

    async def load(self) -> list[Booking]:
        return await asyncio.to_thread(self._load_sync)

    async def append(self, booking: Booking) -> None:
        await asyncio.to_thread(self._append_sync, booking)

    async def replace_all(self, bookings: list[Booking]) -> None:
        await asyncio.to_thread(self._write_sync, [booking.to_record() for booking in bookings])

    def _read_records(self) -> list[dict[str, object]]:
        if not self._path.exists():
            return []
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Bookings file unreadable at %s: %s. Treating as empty.", self._path, exc)
            return []
        if not isinstance(data, list):
            LOGGER.warning("Bookings file invalid at %s. Treating as empty.", self._path)
            return []
        return [item for item in data if isinstance(item, dict)]

    def _load_sync(self) -> list[Booking]:
        return [Booking.from_record(record) for record in self._read_records()]

    def _append_sync(self, booking: Booking) -> None:
        records = self._read_records()
        records.append(booking.to_record())
        self._write_sync(records)

    def _write_sync(self, records: list[dict[str, object]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(records, handle, ensure_ascii=False, indent=2)
        tmp_path.replace(self._path)
