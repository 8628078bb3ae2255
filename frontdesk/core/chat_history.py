from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ChatRole = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str

    def as_llm_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatHistory:
    """Per-chat conversation log shared by the whole process.

    Chats never touch each other's lists. Messages of a single chat are
    expected one at a time; concurrent updates to the same chat are not
    guarded.
    """

    def __init__(self, *, max_messages: int = 40) -> None:
        self._max_messages = max(2, max_messages)
        self._chats: dict[int, list[ChatMessage]] = {}

    def append(self, chat_id: int, role: ChatRole, content: str) -> None:
        text = (content or "").strip()
        if not text:
            return
        messages = self._chats.setdefault(chat_id, [])
        messages.append(ChatMessage(role=role, content=text))
        if len(messages) > self._max_messages:
            del messages[: len(messages) - self._max_messages]

    def as_llm_messages(self, chat_id: int) -> list[dict[str, str]]:
        return [message.as_llm_message() for message in self._chats.get(chat_id, [])]
