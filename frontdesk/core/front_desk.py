from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from frontdesk.core.admin_notify import AdminNotifier
from frontdesk.core.booking_tools import BOOKING_TOOL_SPECS, ToolArgumentError, TrialBookingTools
from frontdesk.core.bookings import BookingLedger
from frontdesk.core.chat_history import ChatHistory
from frontdesk.core.knowledge import build_system_prompt
from frontdesk.infra.llm.base import LLMClient
from frontdesk.infra.request_context import RequestContext, add_trace, elapsed_ms, log_event

LOGGER = logging.getLogger(__name__)

DEFAULT_REPLY = "Готово!"
TOOL_ARGUMENTS_REPLY = "Не хватает данных для записи. Уточните, пожалуйста, имя, телефон и дату."


def tool_results_to_text(outputs: list[str]) -> str:
    return "\n".join(output for output in outputs if output).strip()


class FrontDesk:
    """Answers one chat message: knowledge-base Q&A plus booking tools."""

    def __init__(
        self,
        *,
        llm_client: LLMClient,
        ledger: BookingLedger,
        knowledge_text: str,
        tz: ZoneInfo,
        history: ChatHistory | None = None,
        notifier: AdminNotifier | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._llm = llm_client
        self._ledger = ledger
        self._knowledge_text = knowledge_text
        self._tz = tz
        self._history = history or ChatHistory()
        self._notifier = notifier
        self._now = now_provider or (lambda: datetime.now(timezone.utc))

    @property
    def history(self) -> ChatHistory:
        return self._history

    def tools_for(self, user_id: int) -> TrialBookingTools:
        return TrialBookingTools(
            self._ledger,
            user_id=user_id,
            tz=self._tz,
            notifier=self._notifier,
            now_provider=self._now,
        )

    async def handle_message(
        self,
        *,
        chat_id: int,
        user_id: int,
        text: str,
        request_context: RequestContext | None = None,
    ) -> str:
        self._history.append(chat_id, "user", text)
        system_prompt = build_system_prompt(self._knowledge_text, now=self._now(), tz=self._tz)
        messages = [{"role": "system", "content": system_prompt}, *self._history.as_llm_messages(chat_id)]
        started = time.monotonic()
        completion = await self._llm.create_chat_completion(messages=messages, tools=BOOKING_TOOL_SPECS)
        add_trace(request_context, step="llm", name=self._llm.model, duration_ms=elapsed_ms(started))

        tools = self.tools_for(user_id)
        outputs: list[str] = []
        for call in completion.tool_calls:
            started = time.monotonic()
            status = "ok"
            try:
                output = await tools.dispatch(call.name, call.arguments)
            except ToolArgumentError as exc:
                LOGGER.warning("Tool %s rejected arguments: %s", call.name, exc)
                status = "refused"
                output = TOOL_ARGUMENTS_REPLY
            duration = elapsed_ms(started)
            add_trace(request_context, step="tool", name=call.name, status=status, duration_ms=duration)
            log_event(
                LOGGER,
                request_context,
                component="tools",
                event="tool.call",
                status=status,
                duration_ms=duration,
                tool_name=call.name,
                arguments=call.arguments,
            )
            outputs.append(output)

        reply = tool_results_to_text(outputs) or completion.content.strip() or DEFAULT_REPLY
        self._history.append(chat_id, "assistant", reply)
        return reply
