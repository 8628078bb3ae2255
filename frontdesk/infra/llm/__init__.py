from frontdesk.infra.llm.base import ChatCompletion, LLMAPIError, LLMClient, ToolCall
from frontdesk.infra.llm.openai_client import OpenAIAPIError, OpenAIClient

__all__ = ["ChatCompletion", "LLMAPIError", "LLMClient", "ToolCall", "OpenAIAPIError", "OpenAIClient"]
