"""Approximate token counting."""

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate the token count of text as ceil(characters / 4).

    Args:
        text: Text to measure

    Returns:
        Estimated token count (0 for empty text)
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message_tokens(messages: list[dict[str, str]]) -> int:
    """Estimate tokens of a message list over its space-joined contents."""
    return estimate_tokens(" ".join(m.get("content", "") for m in messages))
