"""Support flow orchestration."""

from supportbot.support.models import InboundMessage, Outcome, OutcomeKind
from supportbot.support.orchestrator import SupportOrchestrator

__all__ = ["InboundMessage", "Outcome", "OutcomeKind", "SupportOrchestrator"]
