"""Heuristic confidence scoring and tone cleanup of AI replies."""

import re

from supportbot.llm.models import Completion

BASE_CONFIDENCE = 0.8
SHORT_REPLY_LENGTH = 20
MIN_VALID_LENGTH = 5

UNCERTAINTY_WORDS = ("maybe", "perhaps", "i think", "possibly", "not sure", "uncertain")
DOMAIN_WORDS = ("frodobots", "robot", "earthrover", "ufb", "help", "support")
FRIENDLY_PHRASES = (
    "here's what i can tell you",
    "from what i know",
    "i can help you with",
    "great question",
    "let me share",
    "happy to help",
    "perfect!",
    "excellent question",
    "great! i can help with both",
)

# Robotic phrase -> natural replacement
ROBOTIC_PHRASES: dict[str, str] = {
    "the information provided does not specify": "I don't have specific info about that",
    "based on the available data": "From what I know",
    "the information provided indicates": "Here's what I can tell you",
    "according to the information": "Based on what I know",
    "the available information shows": "What I can share with you is",
    "it is important to note that": "Keep in mind that",
    "it should be mentioned that": "Also worth noting",
    "the system indicates": "I can see that",
}

ABRUPT_START = re.compile(r"^(However|But|Although)", re.IGNORECASE)


def estimate_confidence(reply: str) -> float:
    """Score a reply in [0, 1] from its wording."""
    lower = reply.lower()
    confidence = BASE_CONFIDENCE

    if len(reply) < SHORT_REPLY_LENGTH:
        confidence -= 0.2

    confidence -= 0.1 * sum(1 for word in UNCERTAINTY_WORDS if word in lower)
    confidence -= 0.2 * sum(1 for phrase in ROBOTIC_PHRASES if phrase in lower)
    confidence += 0.05 * sum(1 for word in DOMAIN_WORDS if word in lower)
    confidence += 0.1 * sum(1 for phrase in FRIENDLY_PHRASES if phrase in lower)

    return max(0.0, min(1.0, confidence))


def improve_tone(reply: str) -> str:
    """Rewrite robotic phrasing into natural phrasing."""
    improved = reply
    for phrase, replacement in ROBOTIC_PHRASES.items():
        improved = re.sub(re.escape(phrase), replacement, improved, count=1, flags=re.IGNORECASE)
    return ABRUPT_START.sub("That said,", improved, count=1)


def evaluate_reply(reply: str | None) -> Completion:
    """Turn a raw model reply into a scored Completion."""
    if not reply or len(reply.strip()) < MIN_VALID_LENGTH:
        return Completion(is_valid=False, text=reply or "", confidence=0.0)
    return Completion(is_valid=True, text=improve_tone(reply), confidence=estimate_confidence(reply))
