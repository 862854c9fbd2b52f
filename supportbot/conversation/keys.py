"""Conversation key construction."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from supportbot.support.models import InboundMessage


def personal_key(author_id: str) -> str:
    """Key of a user's cross-channel personal memory."""
    return f"user_{author_id}"


def scoped_key(
    author_id: str,
    channel_id: str,
    thread_id: str | None = None,
    parent_channel_id: str | None = None,
) -> str:
    """Key of a user's memory within one channel, or one thread of it."""
    if thread_id:
        return f"user_{author_id}:{parent_channel_id or channel_id}:{thread_id}"
    return f"user_{author_id}:{channel_id}"


def conversation_key(message: "InboundMessage", personal: bool | None = None) -> str:
    """Build the conversation key for an inbound message.

    Args:
        message: Inbound message contract
        personal: Use the personal key space; defaults to the message's own flag

    Returns:
        Conversation key
    """
    use_personal = message.personal_memory if personal is None else personal
    if use_personal:
        return personal_key(message.author_id)
    return scoped_key(
        message.author_id,
        message.channel_id,
        thread_id=message.thread_id,
        parent_channel_id=message.parent_channel_id,
    )
