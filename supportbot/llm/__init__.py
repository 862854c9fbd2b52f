"""AI capability layer - providers, confidence scoring and factory."""

# Import providers first to trigger registration via decorators
from supportbot.llm import anthropic_provider, openai_provider
from supportbot.llm.factory import LLMFactory
from supportbot.llm.models import Completion

__all__ = ["Completion", "LLMFactory"]
