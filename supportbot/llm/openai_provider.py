"""OpenAI completion provider."""

from langchain_openai import ChatOpenAI

from supportbot.core.config import LLMConfig
from supportbot.llm.base import ChatModelProvider
from supportbot.llm.factory import LLMFactory


@LLMFactory.register("openai")
class OpenAIProvider(ChatModelProvider):
    """OpenAI API provider using langchain-openai."""

    name = "openai"

    def __init__(self, config: LLMConfig):
        self.config = config
        client_kwargs = {
            "model": config.model,
            "api_key": config.openai_api_key,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "presence_penalty": 0.1,
            "frequency_penalty": 0.1,
        }
        if config.base_url:
            client_kwargs["openai_api_base"] = config.base_url
        self.client = ChatOpenAI(**client_kwargs)
