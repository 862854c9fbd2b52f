"""AI capability result model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Completion:
    """Reply of the AI capability.

    A missing confidence or is_valid=False is treated as low confidence.
    """

    is_valid: bool
    text: str
    confidence: float | None = None

    @property
    def effective_confidence(self) -> float:
        if not self.is_valid or self.confidence is None:
            return 0.0
        return self.confidence
