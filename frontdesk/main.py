from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timezone

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from frontdesk.bot import handlers
from frontdesk.core.admin_notify import AdminNotifier
from frontdesk.core.bookings import BookingLedger
from frontdesk.core.chat_history import ChatHistory
from frontdesk.core.front_desk import FrontDesk
from frontdesk.core.knowledge import load_knowledge_document
from frontdesk.infra.booking_file_store import BookingFileStore
from frontdesk.infra.config import Settings, load_settings, validate_startup
from frontdesk.infra.llm import OpenAIClient
from frontdesk.infra.logging_config import configure_logging
from frontdesk.infra.request_context import RequestContext, env_label, log_event
from frontdesk.infra.sheets_store import SheetsBookingStore, parse_google_credentials

LOGGER = logging.getLogger(__name__)


def build_ledger(settings: Settings) -> BookingLedger:
    fallback = BookingFileStore(settings.bookings_path)
    if not settings.sheets_configured:
        return BookingLedger(fallback)
    credentials_info = parse_google_credentials(
        settings.google_credentials_json,
        service_account_email=settings.google_service_account_email,
        private_key=settings.google_private_key,
    )
    if credentials_info is None:
        LOGGER.warning("Google credentials unusable; bookings go to %s", settings.bookings_path)
        return BookingLedger(fallback)
    primary = SheetsBookingStore(
        spreadsheet_id=settings.google_sheets_spreadsheet_id or "",
        sheet_name=settings.google_sheets_sheet_name,
        credentials_info=credentials_info,
    )
    return BookingLedger(fallback, primary=primary)


def _register_handlers(application: Application) -> None:
    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(MessageHandler(filters.CONTACT, handlers.contact))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.chat))


def main() -> None:
    configure_logging()
    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as exc:
        LOGGER.exception("Startup failed: %s", exc)
        raise SystemExit(str(exc)) from exc
    validate_startup(settings, logger=LOGGER)

    ledger = build_ledger(settings)
    llm_client = OpenAIClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
    )

    application = Application.builder().token(settings.bot_token).build()
    notifier = AdminNotifier(application.bot, settings.admin_chat_id)
    application.bot_data["settings"] = settings
    application.bot_data["front_desk"] = FrontDesk(
        llm_client=llm_client,
        ledger=ledger,
        knowledge_text=load_knowledge_document(settings.doc_path),
        tz=settings.time_zone,
        history=ChatHistory(max_messages=settings.history_size),
        notifier=notifier,
    )

    startup_context = RequestContext(
        correlation_id="startup",
        user_id=0,
        chat_id=0,
        message_id=0,
        env=env_label(),
    )
    log_event(
        LOGGER,
        startup_context,
        component="startup",
        event="startup.check",
        status="ok",
        python_version=sys.version.split()[0],
        timezone=settings.time_zone.key,
        started_at=datetime.now(timezone.utc).isoformat(),
        integrations={
            "sheets": ledger.has_primary,
            "admin_notify": notifier.enabled,
        },
    )

    _register_handlers(application)
    application.add_error_handler(handlers.error_handler)

    LOGGER.info("Bot started")
    try:
        asyncio.get_event_loop()
    except RuntimeError:
        asyncio.set_event_loop(asyncio.new_event_loop())
    application.run_polling()


if __name__ == "__main__":
    main()
