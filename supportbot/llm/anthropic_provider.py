"""Anthropic completion provider."""

from langchain_anthropic import ChatAnthropic

from supportbot.core.config import LLMConfig
from supportbot.llm.base import ChatModelProvider
from supportbot.llm.factory import LLMFactory


@LLMFactory.register("anthropic")
class AnthropicProvider(ChatModelProvider):
    """Anthropic API provider using langchain-anthropic.

    Supports custom base_url for Anthropic-compatible APIs.
    """

    name = "anthropic"

    def __init__(self, config: LLMConfig):
        self.config = config
        client_kwargs = {
            "model": config.model,
            "api_key": config.anthropic_api_key,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        if config.base_url:
            client_kwargs["anthropic_api_url"] = config.base_url
        self.client = ChatAnthropic(**client_kwargs)
