from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from frontdesk.infra.llm.base import ChatCompletion, LLMAPIError, ToolCall

LOGGER = logging.getLogger(__name__)


class OpenAIAPIError(LLMAPIError):
    """OpenAI-specific API error wrapper."""


class OpenAIClient:
    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 30.0,
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self._transport = transport

    async def create_chat_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
    ) -> ChatCompletion:
        payload: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = None
            for attempt in range(self.max_retries + 1):
                try:
                    response = await client.post(url, json=payload, headers=headers)
                except httpx.TimeoutException as exc:
                    if attempt < self.max_retries:
                        await asyncio.sleep(0.5 * (attempt + 1))
                        continue
                    raise RuntimeError("OpenAI request timed out") from exc

                if response.status_code >= 500 and attempt < self.max_retries:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                break

        if response is None:
            raise RuntimeError("OpenAI request failed")

        if response.status_code // 100 != 2:
            body = response.text
            trimmed = body[:500] + ("..." if len(body) > 500 else "")
            raise OpenAIAPIError(
                status_code=response.status_code,
                message=f"OpenAI API error {response.status_code}: {trimmed}",
            )

        data = response.json()
        message = data.get("choices", [{}])[0].get("message", {}) or {}
        return ChatCompletion(
            content=message.get("content") or "",
            tool_calls=_parse_tool_calls(message.get("tool_calls") or []),
        )


def _parse_tool_calls(raw_calls: list[dict[str, Any]]) -> list[ToolCall]:
    calls: list[ToolCall] = []
    for raw in raw_calls:
        function = raw.get("function") or {}
        name = function.get("name")
        if not isinstance(name, str) or not name:
            continue
        arguments_raw = function.get("arguments") or "{}"
        try:
            arguments = json.loads(arguments_raw) if isinstance(arguments_raw, str) else dict(arguments_raw)
        except (json.JSONDecodeError, TypeError, ValueError):
            LOGGER.warning("Tool call %s has malformed arguments; using empty set", name)
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}
        calls.append(ToolCall(id=str(raw.get("id") or ""), name=name, arguments=arguments))
    return calls
