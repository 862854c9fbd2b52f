"""Detection of explicit requests for a human."""


class EscalationDetector:
    """Case-insensitive phrase match against configured escalation phrases."""

    def __init__(self, phrases: list[str]):
        self.phrases = tuple(p.lower() for p in phrases if p.strip())

    def is_requested(self, text: str) -> bool:
        lower = text.lower()
        return any(phrase in lower for phrase in self.phrases)
