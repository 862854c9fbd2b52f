"""Persistent per-conversation session state."""

import asyncio
import json
import weakref
from datetime import UTC, datetime
from typing import Any

from supportbot.core.exceptions import InvalidTransitionError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import KeyValueStore
from supportbot.session.models import (
    SessionState,
    SessionStatus,
    TopicCategory,
    can_transition,
)

logger = get_logger(__name__)

SESSION_PREFIX = "session:"


class ChannelSessionStore:
    """Session state machine persisted in the key-value store.

    Every update is a read-merge-write of the whole record. Updates to one
    key are serialized in-process with a per-key lock; writers in other
    processes remain last-write-wins.
    """

    def __init__(self, store: KeyValueStore, key_prefix: str = SESSION_PREFIX):
        self.store = store
        self.key_prefix = key_prefix
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _key(self, session_key: str) -> str:
        return f"{self.key_prefix}{session_key}"

    def _lock(self, session_key: str) -> asyncio.Lock:
        # Entries vanish once no task holds or awaits the lock.
        lock = self._locks.get(session_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_key] = lock
        return lock

    async def get(self, session_key: str) -> SessionState:
        """Current state, or the default NEW state if none is stored."""
        raw = await self.store.get(self._key(session_key))
        if raw is None:
            return SessionState()
        try:
            return SessionState.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("session_record_discarded", session_key=session_key, error=str(e))
            await self.store.delete(self._key(session_key))
            return SessionState()

    async def _write(self, session_key: str, state: SessionState) -> None:
        await self.store.set(self._key(session_key), json.dumps(state.to_dict(), ensure_ascii=False))

    def _merge(self, current: SessionState, changes: dict[str, Any]) -> SessionState:
        data = current.to_dict()
        for name, value in changes.items():
            if name not in SessionState.__dataclass_fields__:
                raise ValueError(f"Unknown session field: {name}")
            data[name] = value.isoformat() if isinstance(value, datetime) else value

        if "state" not in changes and "escalated_to_human" in changes:
            if changes["escalated_to_human"]:
                data["state"] = SessionStatus.ESCALATED.value
            elif current.state is SessionStatus.ESCALATED:
                data["state"] = self._resume_target(current).value

        target = SessionStatus(data["state"])
        if not can_transition(current.state, target):
            raise InvalidTransitionError(current.state.value, target.value)
        if target is SessionStatus.AI_ACTIVE and not data["selected_product"]:
            raise InvalidTransitionError(current.state.value, target.value)

        data["escalated_to_human"] = target is SessionStatus.ESCALATED
        if not data["escalated_to_human"]:
            data["escalation_reason"] = None
        data["updated_at"] = datetime.now(UTC).isoformat()
        return SessionState.from_dict(data)

    async def set(self, session_key: str, changes: dict[str, Any]) -> SessionState:
        """Merge a partial update into the stored state and persist the whole record.

        Raises:
            InvalidTransitionError: If the state change is not allowed
        """
        async with self._lock(session_key):
            current = await self.get(session_key)
            updated = self._merge(current, changes)
            await self._write(session_key, updated)

        if updated.state is not current.state:
            logger.info(
                "session_state_changed",
                session_key=session_key,
                from_state=current.state.value,
                to_state=updated.state.value,
                product=updated.selected_product,
            )
        return updated

    async def clear(self, session_key: str) -> None:
        async with self._lock(session_key):
            await self.store.delete(self._key(session_key))
        logger.debug("session_cleared", session_key=session_key)

    async def select_category(self, session_key: str, topic: TopicCategory) -> SessionState:
        """Record the ticket topic; hardware, bug and billing escalate at once."""
        if topic.escalates:
            return await self.set(
                session_key,
                {
                    "topic_category": topic,
                    "state": SessionStatus.ESCALATED,
                    "escalation_reason": f"category_{topic.value}",
                },
            )
        return await self.set(
            session_key,
            {"topic_category": topic, "state": SessionStatus.CATEGORY_SELECTED},
        )

    async def select_product(self, session_key: str, product: str) -> SessionState:
        """Pick (or switch) the product; re-enters PRODUCT_SELECTED."""
        current = await self.get(session_key)
        changes: dict[str, Any] = {"selected_product": product, "state": SessionStatus.PRODUCT_SELECTED}
        if current.state is SessionStatus.NEW:
            # Product picked directly (public channel): imply the general topic.
            await self.set(
                session_key,
                {"topic_category": TopicCategory.GENERAL, "state": SessionStatus.CATEGORY_SELECTED},
            )
        return await self.set(session_key, changes)

    async def activate(self, session_key: str) -> SessionState:
        """Move a product-scoped session into AI answering."""
        return await self.set(session_key, {"state": SessionStatus.AI_ACTIVE})

    async def escalate(self, session_key: str, reason: str = "user_request") -> SessionState:
        return await self.set(
            session_key,
            {"state": SessionStatus.ESCALATED, "escalation_reason": reason},
        )

    async def resume(self, session_key: str) -> SessionState:
        """Clear escalation, returning to the furthest state the session had reached."""
        current = await self.get(session_key)
        if current.state is not SessionStatus.ESCALATED:
            return current
        return await self.set(session_key, {"state": self._resume_target(current)})

    async def record_interaction(self, session_key: str) -> SessionState:
        async with self._lock(session_key):
            current = await self.get(session_key)
            current.interaction_count += 1
            current.last_activity_at = datetime.now(UTC)
            current.updated_at = current.last_activity_at
            await self._write(session_key, current)
        return current

    @staticmethod
    def _resume_target(state: SessionState) -> SessionStatus:
        if state.selected_product:
            return SessionStatus.AI_ACTIVE
        if state.topic_category:
            return SessionStatus.CATEGORY_SELECTED
        return SessionStatus.NEW
