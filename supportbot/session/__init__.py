"""Per-conversation session state."""

from supportbot.session.models import SessionState, SessionStatus, TopicCategory
from supportbot.session.store import ChannelSessionStore

__all__ = ["ChannelSessionStore", "SessionState", "SessionStatus", "TopicCategory"]
