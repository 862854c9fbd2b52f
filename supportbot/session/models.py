"""Conversation session state models."""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from supportbot.core.exceptions import UnknownSelectionError


class SessionStatus(StrEnum):
    """Position of a conversation in the support flow."""

    NEW = "new"
    CATEGORY_SELECTED = "category_selected"
    PRODUCT_SELECTED = "product_selected"
    AI_ACTIVE = "ai_active"
    ESCALATED = "escalated"


class TopicCategory(StrEnum):
    """Topics a user can pick when opening a support ticket."""

    GENERAL = "general"
    SOFTWARE = "software"
    HARDWARE = "hardware"
    BUG = "bug"
    BILLING = "billing"

    @property
    def escalates(self) -> bool:
        """Whether picking this topic hands the ticket straight to a human."""
        return self in ESCALATING_TOPICS


ESCALATING_TOPICS = frozenset({TopicCategory.HARDWARE, TopicCategory.BUG, TopicCategory.BILLING})

# Allowed moves; ESCALATED leaves only through resume or a new product pick.
TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.NEW: frozenset(
        {SessionStatus.CATEGORY_SELECTED, SessionStatus.ESCALATED}
    ),
    SessionStatus.CATEGORY_SELECTED: frozenset(
        {SessionStatus.CATEGORY_SELECTED, SessionStatus.PRODUCT_SELECTED, SessionStatus.ESCALATED}
    ),
    SessionStatus.PRODUCT_SELECTED: frozenset(
        {SessionStatus.PRODUCT_SELECTED, SessionStatus.AI_ACTIVE, SessionStatus.ESCALATED}
    ),
    SessionStatus.AI_ACTIVE: frozenset(
        {SessionStatus.PRODUCT_SELECTED, SessionStatus.ESCALATED}
    ),
    SessionStatus.ESCALATED: frozenset(
        {
            SessionStatus.AI_ACTIVE,
            SessionStatus.PRODUCT_SELECTED,
            SessionStatus.CATEGORY_SELECTED,
            SessionStatus.NEW,
        }
    ),
}


def parse_topic(key: str) -> TopicCategory:
    """Resolve a ticket topic key, rejecting anything not declared."""
    try:
        return TopicCategory(key.strip().lower())
    except ValueError as e:
        raise UnknownSelectionError(f"Unknown topic: {key}", key=key) from e


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return current == target or target in TRANSITIONS[current]


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class SessionState:
    """Per-conversation topic and escalation state; the unit of storage."""

    state: SessionStatus = SessionStatus.NEW
    topic_category: TopicCategory | None = None
    selected_product: str | None = None
    escalated_to_human: bool = False
    escalation_reason: str | None = None
    interaction_count: int = 0
    created_at: datetime = field(default_factory=_now)
    last_activity_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def is_escalated(self) -> bool:
        return self.escalated_to_human

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation."""
        data = asdict(self)
        data["state"] = self.state.value
        data["topic_category"] = self.topic_category.value if self.topic_category else None
        for name in ("created_at", "last_activity_at", "updated_at"):
            data[name] = data[name].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionState":
        """Build from a stored record, filling missing fields with defaults.

        Raises:
            ValueError: If a present field has an invalid value
        """
        merged = {**cls().to_dict(), **{k: v for k, v in data.items() if k in cls.__dataclass_fields__}}
        topic = merged["topic_category"]
        return cls(
            state=SessionStatus(merged["state"]),
            topic_category=TopicCategory(topic) if topic else None,
            selected_product=merged["selected_product"],
            escalated_to_human=bool(merged["escalated_to_human"]),
            escalation_reason=merged["escalation_reason"],
            interaction_count=int(merged["interaction_count"]),
            created_at=datetime.fromisoformat(merged["created_at"]),
            last_activity_at=datetime.fromisoformat(merged["last_activity_at"]),
            updated_at=datetime.fromisoformat(merged["updated_at"]),
        )
