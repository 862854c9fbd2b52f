"""Token-budgeted rolling message history per conversation."""

import time
from dataclasses import dataclass
from typing import Any

from supportbot.core.config import ContextConfig
from supportbot.core.exceptions import UnknownConversationError
from supportbot.core.logging import get_logger
from supportbot.utils.token_counter import estimate_message_tokens

logger = get_logger(__name__)


@dataclass
class _Context:
    messages: list[dict[str, str]]
    touched_at: float


class ConversationContextManager:
    """Ordered role-tagged history keyed by conversation id.

    Message 0 is always the system prompt. When the estimated tokens of all
    message contents exceed the budget, only the system prompt and the most
    recent window of messages survive; nothing is summarized or reordered.
    """

    def __init__(self, config: ContextConfig):
        self.max_tokens = config.max_tokens
        self.window_size = config.window_size
        self.idle_ttl_seconds = config.idle_ttl_seconds
        self._contexts: dict[str, _Context] = {}

    def has(self, conversation_id: str) -> bool:
        return conversation_id in self._contexts

    def initialize(self, conversation_id: str, system_prompt: str) -> bool:
        """Create a context seeded with a system prompt; no-op if one exists.

        Returns:
            True if a new context was created
        """
        if conversation_id in self._contexts:
            return False
        self._contexts[conversation_id] = _Context(
            messages=[{"role": "system", "content": system_prompt}],
            touched_at=time.monotonic(),
        )
        logger.debug("conversation_initialized", conversation_id=conversation_id)
        return True

    def reset(self, conversation_id: str, system_prompt: str) -> None:
        """Replace any existing context with a fresh one."""
        self.clear(conversation_id)
        self.initialize(conversation_id, system_prompt)

    def set_system_prompt(self, conversation_id: str, system_prompt: str) -> None:
        """Swap the system prompt of an existing context, keeping its turns."""
        context = self._require(conversation_id)
        context.messages[0] = {"role": "system", "content": system_prompt}
        self._enforce_budget(conversation_id, context)

    def append_user(self, conversation_id: str, text: str) -> None:
        self._append(conversation_id, "user", text)

    def append_assistant(self, conversation_id: str, text: str) -> None:
        self._append(conversation_id, "assistant", text)

    def _require(self, conversation_id: str) -> _Context:
        context = self._contexts.get(conversation_id)
        if context is None:
            raise UnknownConversationError(conversation_id)
        return context

    def _append(self, conversation_id: str, role: str, text: str) -> None:
        context = self._require(conversation_id)
        context.messages.append({"role": role, "content": text})
        context.touched_at = time.monotonic()
        self._enforce_budget(conversation_id, context)

    def _enforce_budget(self, conversation_id: str, context: _Context) -> None:
        tokens = estimate_message_tokens(context.messages)
        if tokens <= self.max_tokens:
            return

        before = len(context.messages)
        system, turns = context.messages[0], context.messages[1:]
        context.messages = [system, *turns[-self.window_size :]] if self.window_size > 0 else [system]
        logger.info(
            "conversation_truncated",
            conversation_id=conversation_id,
            estimated_tokens=tokens,
            max_tokens=self.max_tokens,
            before=before,
            after=len(context.messages),
        )

    def get_history(self, conversation_id: str) -> list[dict[str, str]]:
        """Copy of the ordered history (empty if the conversation is unknown)."""
        context = self._contexts.get(conversation_id)
        if context is None:
            return []
        return [dict(message) for message in context.messages]

    def clear(self, conversation_id: str) -> None:
        if self._contexts.pop(conversation_id, None) is not None:
            logger.debug("conversation_cleared", conversation_id=conversation_id)

    def stats(self, conversation_id: str) -> dict[str, Any]:
        """Message count, estimated tokens and whether the budget is exceeded."""
        messages = self.get_history(conversation_id)
        tokens = estimate_message_tokens(messages)
        return {
            "message_count": len(messages),
            "estimated_tokens": tokens,
            "max_tokens": self.max_tokens,
            "over_limit": tokens > self.max_tokens,
        }

    def summary(self, conversation_id: str) -> dict[str, Any]:
        """Counts and the last user/assistant messages of a conversation."""
        messages = self.get_history(conversation_id)
        user = [m["content"] for m in messages if m["role"] == "user"]
        assistant = [m["content"] for m in messages if m["role"] == "assistant"]
        return {
            "user_messages": len(user),
            "assistant_messages": len(assistant),
            "last_user_message": user[-1] if user else None,
            "last_assistant_message": assistant[-1] if assistant else None,
        }

    def evict_idle(self, max_age_seconds: float | None = None) -> int:
        """Drop contexts untouched for longer than max_age_seconds.

        Returns:
            Number of contexts evicted
        """
        max_age = self.idle_ttl_seconds if max_age_seconds is None else max_age_seconds
        cutoff = time.monotonic() - max_age
        stale = [cid for cid, context in self._contexts.items() if context.touched_at < cutoff]
        for cid in stale:
            del self._contexts[cid]
        if stale:
            logger.info("conversations_evicted", count=len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._contexts)
