"""Adapter-boundary data contracts."""

from dataclasses import dataclass
from enum import StrEnum

from supportbot.conversation.keys import conversation_key


@dataclass(frozen=True)
class InboundMessage:
    """A chat message as handed over by the platform adapter.

    Scope identifiers decide the conversation key; personal_memory picks the
    cross-channel key space explicitly.
    """

    author_id: str
    tenant_id: str
    channel_id: str
    text: str
    thread_id: str | None = None
    parent_channel_id: str | None = None
    personal_memory: bool = False
    session_key: str | None = None

    def resolved_session_key(self) -> str:
        """Explicit session key, or the conversation key derived from the scope."""
        return self.session_key or conversation_key(self)


class OutcomeKind(StrEnum):
    ANSWER = "answer"
    LOW_CONFIDENCE = "low_confidence"
    ESCALATED = "escalated"
    IGNORED = "ignored"
    FALLBACK = "fallback"
    SERVICE_DEGRADED = "service_degraded"
    UNKNOWN_SELECTION = "unknown_selection"
    OUT_OF_SCOPE = "out_of_scope"
    PROMPT = "prompt"


@dataclass(frozen=True)
class Outcome:
    """What the adapter should do in response to an event."""

    kind: OutcomeKind
    text: str | None = None
    confidence: float | None = None
    session_key: str | None = None

    @property
    def should_reply(self) -> bool:
        return self.text is not None and self.kind not in (OutcomeKind.IGNORED, OutcomeKind.OUT_OF_SCOPE)
