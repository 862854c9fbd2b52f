"""Tests for the AI capability layer."""

import pytest

from supportbot.core.config import LLMConfig
from supportbot.core.exceptions import CompletionError, ConfigurationError
from supportbot.llm.base import ChatModelProvider, message_text
from supportbot.llm.confidence import estimate_confidence, evaluate_reply, improve_tone
from supportbot.llm.factory import LLMFactory
from supportbot.llm.models import Completion


class TestLLMFactory:
    """Test cases for LLM Factory."""

    def test_available_providers(self):
        """Test that providers are registered."""
        providers = LLMFactory.available_providers()
        assert "openai" in providers
        assert "anthropic" in providers

    def test_create_openai_provider(self):
        """Test creating OpenAI provider."""
        config = LLMConfig(
            provider="openai",
            model="gpt-4o-mini",
            openai_api_key="test-key",
        )
        provider = LLMFactory.create(config)
        assert provider.__class__.__name__ == "OpenAIProvider"

    def test_create_anthropic_provider(self):
        """Test creating Anthropic provider."""
        config = LLMConfig(
            provider="anthropic",
            model="claude-3-5-haiku-latest",
            anthropic_api_key="test-key",
        )
        provider = LLMFactory.create(config)
        assert provider.__class__.__name__ == "AnthropicProvider"

    def test_unknown_provider_raises(self):
        """Test that unknown provider raises error."""
        config = LLMConfig(provider="unknown", model="x")
        with pytest.raises(ConfigurationError) as exc_info:
            LLMFactory.create(config)
        assert "Unknown LLM provider" in str(exc_info.value.message)


class TestConfidence:
    """Test cases for reply scoring."""

    def test_too_short_reply_is_invalid(self):
        completion = evaluate_reply("ok")
        assert completion.is_valid is False
        assert completion.effective_confidence == 0.0

        assert evaluate_reply(None).is_valid is False

    def test_uncertainty_lowers_confidence(self):
        sure = estimate_confidence("Open the app settings and pick Reset to restore your bot.")
        unsure = estimate_confidence("Maybe open the app settings, I think Reset might restore your bot.")
        assert unsure < sure

    def test_domain_words_raise_confidence(self):
        plain = estimate_confidence("Open the app settings and pick the reset option there.")
        domain = estimate_confidence("Open the FrodoBots app settings and pick the robot reset option.")
        assert domain > plain

    def test_confidence_is_clamped(self):
        reply = (
            "Maybe, perhaps, I think possibly: it is important to note that the system indicates, "
            "based on the available data, not sure."
        )
        assert estimate_confidence(reply) == 0.0

    def test_improve_tone(self):
        assert improve_tone("The information provided does not specify a date.") == (
            "I don't have specific info about that a date."
        )
        assert improve_tone("But the app restarts.") == "That said, the app restarts."

    def test_missing_confidence_counts_as_zero(self):
        assert Completion(is_valid=True, text="fine", confidence=None).effective_confidence == 0.0


class _FailingModel:
    async def ainvoke(self, messages):
        raise RuntimeError("upstream timeout")


class _EchoModel:
    class _Response:
        content = [{"type": "text", "text": "Happy to help with your Earthrover "}, "setup today."]

    async def ainvoke(self, messages):
        return self._Response()


class TestChatModelProvider:
    """Test cases for the shared completion flow."""

    def test_message_text_flattens_blocks(self):
        assert message_text("plain") == "plain"
        assert message_text([{"type": "text", "text": "a"}, {"type": "image"}, "b"]) == "ab"

    @pytest.mark.asyncio
    async def test_complete_scores_reply(self):
        provider = ChatModelProvider()
        provider.client = _EchoModel()

        completion = await provider.complete([{"role": "user", "content": "hi"}])

        assert completion.is_valid
        assert completion.text == "Happy to help with your Earthrover setup today."
        assert completion.confidence > 0.8

    @pytest.mark.asyncio
    async def test_failure_raises_completion_error(self):
        provider = ChatModelProvider()
        provider.client = _FailingModel()

        with pytest.raises(CompletionError):
            await provider.complete([{"role": "user", "content": "hi"}])
