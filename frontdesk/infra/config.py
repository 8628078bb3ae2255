from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "Asia/Omsk"
DEFAULT_DOC_PATH = Path("doc.txt")
DEFAULT_BOOKINGS_PATH = Path("bookings.json")
DEFAULT_SHEET_NAME = "bookings"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    bot_token: str
    openai_api_key: str
    openai_model: str
    openai_timeout_seconds: float
    admin_chat_id: int | None
    time_zone: ZoneInfo
    doc_path: Path
    bookings_path: Path
    google_sheets_spreadsheet_id: str | None
    google_sheets_sheet_name: str
    google_credentials_json: str | None
    google_service_account_email: str | None
    google_private_key: str | None
    history_size: int

    @property
    def sheets_configured(self) -> bool:
        has_credentials = bool(
            self.google_credentials_json or (self.google_service_account_email and self.google_private_key)
        )
        return bool(self.google_sheets_spreadsheet_id) and has_credentials


def load_settings(raw_env: dict[str, str] | None = None) -> Settings:
    if raw_env is None:
        load_dotenv()
    env = raw_env if raw_env is not None else os.environ

    token = (env.get("TELEGRAM_BOT_TOKEN") or "").strip()
    if not token:
        raise RuntimeError("Missing TELEGRAM_BOT_TOKEN in environment.")
    openai_api_key = (env.get("OPENAI_API_KEY") or "").strip()
    if not openai_api_key:
        raise RuntimeError("Missing OPENAI_API_KEY in environment.")

    return Settings(
        bot_token=token,
        openai_api_key=openai_api_key,
        openai_model=(env.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL).strip(),
        openai_timeout_seconds=_parse_optional_float(env.get("OPENAI_TIMEOUT_SECONDS"), 30.0),
        admin_chat_id=_parse_optional_int(env.get("ADMIN_CHAT_ID")),
        time_zone=_parse_time_zone(env.get("TIME_ZONE")),
        doc_path=Path(env.get("DOC_PATH") or DEFAULT_DOC_PATH),
        bookings_path=Path(env.get("BOOKINGS_PATH") or DEFAULT_BOOKINGS_PATH),
        google_sheets_spreadsheet_id=env.get("GOOGLE_SHEETS_SPREADSHEET_ID") or None,
        google_sheets_sheet_name=env.get("GOOGLE_SHEETS_SHEET_NAME") or DEFAULT_SHEET_NAME,
        google_credentials_json=env.get("GOOGLE_CREDENTIALS_JSON") or None,
        google_service_account_email=env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL") or None,
        google_private_key=env.get("GOOGLE_PRIVATE_KEY") or None,
        history_size=_parse_int_with_default(env.get("HISTORY_SIZE"), 40),
    )


def validate_startup(settings: Settings, *, logger: logging.Logger | None = None) -> None:
    log = logger or LOGGER
    if not settings.doc_path.exists():
        log.error("startup.env invalid: knowledge document missing path=%s", settings.doc_path)
        raise SystemExit(f"DOC_PATH is invalid: {settings.doc_path}")
    if settings.google_sheets_spreadsheet_id and not settings.sheets_configured:
        log.warning("startup.env sheets disabled: missing GOOGLE_CREDENTIALS_JSON or service account pair")
    if settings.admin_chat_id is None:
        log.warning("startup.env admin notifications disabled: ADMIN_CHAT_ID not set")


def _parse_time_zone(value: str | None) -> ZoneInfo:
    name = (value or "").strip() or DEFAULT_TIME_ZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"Unknown TIME_ZONE: {name}") from exc


def _parse_optional_int(value: str | None) -> int | None:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return int(trimmed)


def _parse_optional_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    trimmed = value.strip()
    if not trimmed:
        return default
    return float(trimmed)


def _parse_int_with_default(value: str | None, default: int) -> int:
    if value is None:
        return default
    trimmed = value.strip()
    if not trimmed:
        return default
    return int(trimmed)
