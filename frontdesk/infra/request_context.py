from __future__ import annotations

import hashlib
import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from telegram import Update
from telegram.ext import ContextTypes

LOGGER = logging.getLogger(__name__)

_CONTEXT_KEY = "_request_context"
_DEV_ENVS = {"dev", "development", "local"}
_SECRET_KEYS = {"authorization", "api_key", "apikey", "token", "password", "private_key"}
# Free text from users is logged as length + hash, never verbatim outside dev.
_TEXT_KEYS = {"text", "prompt", "input_text", "message", "reply", "content", "name", "phone", "when", "newwhen"}


@dataclass
class RequestContext:
    correlation_id: str
    user_id: int
    chat_id: int
    message_id: int
    env: str
    input_text: str = ""
    start_time: float = field(default_factory=time.monotonic)
    status: str = "ok"
    response_size: int = 0
    trace: list[dict[str, Any]] = field(default_factory=list)


def env_label() -> str:
    env = os.getenv("APP_ENV", "prod").strip().lower()
    return "dev" if env in _DEV_ENVS else "prod"


def start_request(update: Update | None, context: ContextTypes.DEFAULT_TYPE | None) -> RequestContext:
    user = update.effective_user if update else None
    chat = update.effective_chat if update else None
    message = update.effective_message if update else None
    message_id = getattr(message, "message_id", 0) if message else 0
    request_context = RequestContext(
        correlation_id=str(uuid.uuid4()),
        user_id=user.id if user else 0,
        chat_id=chat.id if chat else 0,
        message_id=message_id if isinstance(message_id, int) else 0,
        env=env_label(),
        input_text=(getattr(message, "text", None) or "") if message else "",
    )
    chat_data = getattr(context, "chat_data", None)
    if chat_data is not None:
        chat_data[_CONTEXT_KEY] = request_context
    return request_context


def get_request_context(context: ContextTypes.DEFAULT_TYPE | None) -> RequestContext | None:
    chat_data = getattr(context, "chat_data", None)
    if chat_data is None:
        return None
    return chat_data.get(_CONTEXT_KEY)


def set_status(context: ContextTypes.DEFAULT_TYPE | None, status: str) -> None:
    request_context = get_request_context(context)
    if request_context:
        request_context.status = status


def add_response_size(context: ContextTypes.DEFAULT_TYPE | None, size: int) -> None:
    request_context = get_request_context(context)
    if request_context:
        request_context.response_size += max(size, 0)


def add_trace(
    request_context: RequestContext | None,
    *,
    step: str,
    name: str | None = None,
    status: str = "ok",
    duration_ms: float | None = None,
) -> None:
    if request_context is None:
        return
    request_context.trace.append({"step": step, "name": name, "status": status, "duration_ms": duration_ms})


def elapsed_ms(start_time: float) -> float:
    return max((time.monotonic() - start_time) * 1000, 0.01)


def _hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def safe_log_payload(env: str, data: Any) -> Any:
    if isinstance(data, str):
        payload: dict[str, Any] = {"text_len": len(data), "text_sha256": _hash_text(data)}
        if env == "dev":
            payload["text_preview"] = data.replace("\n", " ")[:120]
        return payload
    if isinstance(data, dict):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if key_lower in _SECRET_KEYS:
                sanitized[key] = "***"
            elif key_lower in _TEXT_KEYS:
                sanitized[key] = safe_log_payload(env, str(value))
            elif isinstance(value, (dict, list, tuple)):
                sanitized[key] = safe_log_payload(env, value)
            else:
                sanitized[key] = value
        return sanitized
    if isinstance(data, (list, tuple)):
        return [safe_log_payload(env, item) if isinstance(item, (dict, list, tuple)) else item for item in data]
    return data


def log_event(
    logger: logging.Logger,
    request_context: RequestContext | None,
    *,
    component: str,
    event: str,
    status: str = "ok",
    duration_ms: float | None = None,
    **fields: Any,
) -> None:
    env = request_context.env if request_context else env_label()
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "correlation_id": request_context.correlation_id if request_context else "-",
        "component": component,
        "event": event,
        "status": status,
        "env": env,
    }
    if duration_ms is not None:
        payload["duration_ms"] = round(duration_ms, 2)
    if fields:
        payload.update(safe_log_payload(env, fields))
    message = json.dumps(payload, ensure_ascii=False)
    if status == "error":
        logger.error(message)
    elif status == "refused":
        logger.warning(message)
    else:
        logger.info(message)


def log_request(logger: logging.Logger, request_context: RequestContext) -> None:
    log_event(
        logger,
        request_context,
        component="handler",
        event="request.summary",
        status=request_context.status,
        duration_ms=elapsed_ms(request_context.start_time),
        user_id=request_context.user_id,
        chat_id=request_context.chat_id,
        input_text=request_context.input_text,
        response_size=request_context.response_size,
        trace=request_context.trace,
    )
