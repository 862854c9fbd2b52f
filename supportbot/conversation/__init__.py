"""Per-conversation rolling message history."""

from supportbot.conversation.context_manager import ConversationContextManager
from supportbot.conversation.keys import conversation_key, personal_key, scoped_key

__all__ = ["ConversationContextManager", "conversation_key", "personal_key", "scoped_key"]
