from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Callable

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from frontdesk.core.bookings import SHEET_HEADER, Booking

LOGGER = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsUnavailable(RuntimeError):
    """Sheets backend cannot serve the request; callers fall back to the file store."""


def parse_google_credentials(
    credentials_json: str | None,
    *,
    service_account_email: str | None = None,
    private_key: str | None = None,
) -> dict[str, str] | None:
    """Service-account info from raw or base64 JSON, else an email/key pair."""
    if credentials_json:
        raw = credentials_json.strip()
        if not raw.startswith("{"):
            try:
                raw = base64.b64decode(raw, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                LOGGER.warning("GOOGLE_CREDENTIALS_JSON is neither JSON nor base64 JSON")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
            LOGGER.warning("GOOGLE_CREDENTIALS_JSON could not be parsed")
        if isinstance(parsed, dict):
            client_email = parsed.get("client_email")
            key = parsed.get("private_key")
            if isinstance(key, str):
                key = key.replace("\\n", "\n").replace("\r\n", "\n")
            if client_email and key:
                info = {str(k): v for k, v in parsed.items()}
                info["private_key"] = key
                info.setdefault("token_uri", DEFAULT_TOKEN_URI)
                return info
    if service_account_email and private_key:
        return {
            "client_email": service_account_email,
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": DEFAULT_TOKEN_URI,
        }
    return None


def build_sheets_service(credentials_info: dict[str, str]) -> Any:
    credentials = service_account.Credentials.from_service_account_info(credentials_info, scopes=SHEETS_SCOPES)
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class SheetsBookingStore:
    name = "sheets"

    def __init__(
        self,
        *,
        spreadsheet_id: str,
        sheet_name: str,
        credentials_info: dict[str, str],
        service_factory: Callable[[dict[str, str]], Any] = build_sheets_service,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._sheet_name = sheet_name
        self._credentials_info = credentials_info
        self._service_factory = service_factory
        self._service: Any = None

    async def load(self) -> list[Booking]:
        return await asyncio.to_thread(self._call, self._load_sync)

    async def append(self, booking: Booking) -> None:
        await asyncio.to_thread(self._call, self._append_sync, booking)

    async def replace_all(self, bookings: list[Booking]) -> None:
        await asyncio.to_thread(self._call, self._replace_sync, bookings)

    def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except (HttpError, GoogleAuthError, ValueError) as exc:
            raise SheetsUnavailable(f"Sheets request failed: {exc}") from exc

    def _values(self) -> Any:
        if self._service is None:
            self._service = self._service_factory(self._credentials_info)
        return self._service.spreadsheets().values()

    def _ensure_header(self) -> None:
        response = (
            self._values()
            .get(spreadsheetId=self._spreadsheet_id, range=f"{self._sheet_name}!A1:Z1", majorDimension="ROWS")
            .execute()
        )
        rows = response.get("values") or []
        first_row = rows[0] if rows else []
        if first_row == SHEET_HEADER:
            return
        if first_row:
            LOGGER.warning("Sheet header mismatch; overwriting with canonical header sheet=%s", self._sheet_name)
        self._values().update(
            spreadsheetId=self._spreadsheet_id,
            range=f"{self._sheet_name}!A1",
            valueInputOption="RAW",
            body={"values": [SHEET_HEADER]},
        ).execute()

    def _load_sync(self) -> list[Booking]:
        self._ensure_header()
        response = (
            self._values()
            .get(spreadsheetId=self._spreadsheet_id, range=f"{self._sheet_name}!A1:Z", majorDimension="ROWS")
            .execute()
        )
        rows = response.get("values") or []
        if not rows:
            return []
        header = [str(column) for column in rows[0]]
        return [Booking.from_row(header, [str(cell) for cell in row]) for row in rows[1:]]

    def _append_sync(self, booking: Booking) -> None:
        self._ensure_header()
        self._values().append(
            spreadsheetId=self._spreadsheet_id,
            range=f"{self._sheet_name}!A1",
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [booking.to_row()]},
        ).execute()

    def _replace_sync(self, bookings: list[Booking]) -> None:
        self._ensure_header()
        self._values().clear(spreadsheetId=self._spreadsheet_id, range=f"{self._sheet_name}!A2:Z", body={}).execute()
        rows = [booking.to_row() for booking in bookings]
        if rows:
            self._values().update(
                spreadsheetId=self._spreadsheet_id,
                range=f"{self._sheet_name}!A2",
                valueInputOption="RAW",
                body={"values": rows},
            ).execute()
