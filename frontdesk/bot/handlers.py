from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import wraps

from telegram import Update
from telegram.constants import ChatAction
from telegram.ext import ContextTypes

from frontdesk.core.front_desk import FrontDesk
from frontdesk.infra.messaging import safe_send_text
from frontdesk.infra.request_context import get_request_context, log_request, set_status, start_request

LOGGER = logging.getLogger(__name__)

START_MESSAGE = (
    "Привет!\n\n"
    "Я администратор IronPulse. Задайте вопрос: цены, расписание, услуги, контакты.\n"
    "Или напишите мне свой номер телефона, и я свяжусь с вами."
)
ERROR_MESSAGE = "Упс, что-то пошло не так. Попробуйте ещё раз позже."
CONTACT_PREFIX = "Мой номер телефона: "


def _get_front_desk(context: ContextTypes.DEFAULT_TYPE) -> FrontDesk:
    return context.application.bot_data["front_desk"]


def _with_error_handling(
    handler: Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]],
) -> Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]:
    @wraps(handler)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        request_context = start_request(update, context)
        try:
            await handler(update, context)
        except Exception:
            set_status(context, "error")
            LOGGER.exception("Handler %s failed", handler.__name__)
            await _reply_error(update, context)
        finally:
            log_request(LOGGER, request_context)

    return wrapper


async def _reply_error(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    try:
        await safe_send_text(update, context, ERROR_MESSAGE)
    except Exception:
        LOGGER.exception("Failed to deliver error reply")


async def _answer(update: Update, context: ContextTypes.DEFAULT_TYPE, text: str) -> None:
    chat_id = update.effective_chat.id if update.effective_chat else 0
    user_id = update.effective_user.id if update.effective_user else 0
    await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
    reply = await _get_front_desk(context).handle_message(
        chat_id=chat_id,
        user_id=user_id,
        text=text,
        request_context=get_request_context(context),
    )
    await safe_send_text(update, context, reply)


@_with_error_handling
async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await safe_send_text(update, context, START_MESSAGE)


@_with_error_handling
async def chat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message.text if update.message else ""
    prompt = (message or "").strip()
    if not prompt:
        return
    await _answer(update, context, prompt)


@_with_error_handling
async def contact(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    shared = update.message.contact if update.message else None
    phone = shared.phone_number if shared else None
    if not phone:
        return
    await _answer(update, context, f"{CONTACT_PREFIX}{phone}")


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    set_status(context, "error")
    LOGGER.exception("Unhandled exception", exc_info=context.error)
