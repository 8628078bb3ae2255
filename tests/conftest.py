import sys
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeNotifier:
    """Записывает уведомления админу вместо отправки в Telegram."""

    def __init__(self) -> None:
        self.created: list = []
        self.rescheduled: list = []
        self.canceled: list = []

    async def booking_created(self, booking) -> None:
        self.created.append(booking)

    async def booking_rescheduled(self, booking, old_when: str) -> None:
        self.rescheduled.append((booking, old_when))

    async def booking_canceled(self, booking) -> None:
        self.canceled.append(booking)


@pytest.fixture
def omsk() -> ZoneInfo:
    return ZoneInfo("Asia/Omsk")


@pytest.fixture
def day_now() -> datetime:
    # Суббота, 4 октября 2025, 12:00 по Омску (UTC+6).
    return datetime(2025, 10, 4, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def late_now() -> datetime:
    # Та же суббота, 23:10 по Омску.
    return datetime(2025, 10, 4, 17, 10, tzinfo=timezone.utc)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
