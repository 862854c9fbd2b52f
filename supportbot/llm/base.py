"""Shared completion flow for LangChain chat models."""

from typing import Any

from langchain_core.language_models import BaseChatModel

from supportbot.core.exceptions import CompletionError
from supportbot.core.logging import get_logger
from supportbot.llm.confidence import evaluate_reply
from supportbot.llm.models import Completion

logger = get_logger(__name__)


def message_text(content: Any) -> str:
    """Flatten LangChain message content (str or list of content blocks)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class ChatModelProvider:
    """Invoke a chat model and score its reply."""

    name = "base"
    client: BaseChatModel

    async def complete(self, messages: list[dict[str, str]]) -> Completion:
        """Complete a role-tagged message list.

        Raises:
            CompletionError: If the model call fails
        """
        try:
            response = await self.client.ainvoke(messages)
        except Exception as e:
            logger.error("completion_failed", provider=self.name, error=str(e))
            raise CompletionError(f"{self.name} completion failed: {e}", provider=self.name) from e

        completion = evaluate_reply(message_text(response.content))
        logger.debug(
            "completion_received",
            provider=self.name,
            is_valid=completion.is_valid,
            confidence=completion.confidence,
        )
        return completion
