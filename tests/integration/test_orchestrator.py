"""End-to-end tests of the support flow with in-memory collaborators."""

import pytest
import pytest_asyncio
from conftest import FakeFetcher

from supportbot.content.cache import ContentCache
from supportbot.content.supplemental import SupplementalContentLoader
from supportbot.conversation.context_manager import ConversationContextManager
from supportbot.core.config import ContentConfig, ContextConfig
from supportbot.core.exceptions import CompletionError
from supportbot.llm.models import Completion
from supportbot.retrieval.lexical import LexicalRanker
from supportbot.retrieval.models import RankedResult
from supportbot.session.models import SessionStatus, TopicCategory
from supportbot.support.models import InboundMessage, OutcomeKind
from supportbot.support.orchestrator import SupportOrchestrator
from supportbot.support.prompts import RESUMED_TEXT, TOPIC_INSTRUCTIONS

TENANT = "guild-1"
CHANNEL = "support-chan"


def message(text: str, channel_id: str = CHANNEL, **kwargs) -> InboundMessage:
    return InboundMessage(author_id="42", tenant_id=TENANT, channel_id=channel_id, text=text, **kwargs)


@pytest_asyncio.fixture
async def registered(registry):
    await registry.add(TENANT, CHANNEL, {"display_name": "support"})
    return registry


class SpyRanker(LexicalRanker):
    """Lexical ranker that remembers the budget it was given."""

    def __init__(self, config):
        super().__init__(config)
        self.budgets: list[int] = []

    async def rank(self, query, snapshot, token_budget) -> RankedResult:
        self.budgets.append(token_budget)
        return await super().rank(query, snapshot, token_budget)


class TestInboundMessages:
    """Test cases for SupportOrchestrator.handle_inbound_message."""

    @pytest.mark.asyncio
    async def test_answer_uses_ranked_articles(self, orchestrator, registered, mock_llm, contexts):
        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.ANSWER
        assert outcome.should_reply
        assert outcome.confidence == 0.9

        sent = mock_llm.calls[0]
        assert sent[0]["role"] == "system"
        assert "Resetting your password" in sent[0]["content"]
        assert sent[-1] == {"role": "user", "content": "How do I reset my password?"}

        history = contexts.get_history(outcome.session_key)
        assert [m["role"] for m in history] == ["system", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_low_confidence_sends_fallback_text(self, orchestrator, registered, mock_llm, contexts, test_config):
        mock_llm.completion = Completion(is_valid=True, text="Maybe try restarting?", confidence=0.2)

        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.LOW_CONFIDENCE
        assert outcome.text == test_config.support.low_confidence_message
        history = contexts.get_history(outcome.session_key)
        assert history[-1] == {"role": "assistant", "content": test_config.support.low_confidence_message}

    @pytest.mark.asyncio
    async def test_unregistered_channel_is_out_of_scope(self, orchestrator, mock_llm):
        outcome = await orchestrator.handle_inbound_message(message("hello?", channel_id="random"))

        assert outcome.kind is OutcomeKind.OUT_OF_SCOPE
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_thread_under_registered_channel_is_in_scope(self, orchestrator, registered, mock_llm):
        outcome = await orchestrator.handle_inbound_message(
            message(
                "How do I reset my password?",
                channel_id="thread-9",
                thread_id="thread-9",
                parent_channel_id=CHANNEL,
            )
        )

        assert outcome.kind is OutcomeKind.ANSWER
        assert outcome.session_key == f"user_42:{CHANNEL}:thread-9"

    @pytest.mark.asyncio
    async def test_escalated_session_is_ignored(self, orchestrator, registered, mock_llm, sessions):
        key = message("x").resolved_session_key()
        await sessions.escalate(key)

        outcome = await orchestrator.handle_inbound_message(message("Are you there?"))

        assert outcome.kind is OutcomeKind.IGNORED
        assert not outcome.should_reply
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_escalation_phrase_hands_off(self, orchestrator, registered, mock_llm, sessions, test_config):
        outcome = await orchestrator.handle_inbound_message(message("I want to talk to team please"))

        assert outcome.kind is OutcomeKind.ESCALATED
        assert outcome.text == test_config.support.handoff_message
        assert mock_llm.calls == []
        assert (await sessions.get(outcome.session_key)).escalated_to_human

        follow_up = await orchestrator.handle_inbound_message(message("hello?"))
        assert follow_up.kind is OutcomeKind.IGNORED

    @pytest.mark.asyncio
    async def test_corpus_not_loaded_degrades(self, orchestrator, registered, mock_llm, test_config):
        orchestrator.content = ContentCache(test_config.content, FakeFetcher())

        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.SERVICE_DEGRADED
        assert outcome.text == test_config.support.fallback_message
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_completion_failure_falls_back(self, orchestrator, registered, mock_llm, test_config):
        mock_llm.error = CompletionError("timeout", provider="openai")

        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.FALLBACK
        assert outcome.text == test_config.support.fallback_message

    @pytest.mark.asyncio
    async def test_invalid_reply_falls_back(self, orchestrator, registered, mock_llm):
        mock_llm.reply_with("ok")

        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.FALLBACK

    @pytest.mark.asyncio
    async def test_topic_without_product_asks_for_product(self, orchestrator, registered, sessions, mock_llm):
        key = message("x").resolved_session_key()
        await sessions.select_category(key, TopicCategory.SOFTWARE)

        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))

        assert outcome.kind is OutcomeKind.PROMPT
        assert "Which product" in outcome.text
        assert mock_llm.calls == []
        assert (await sessions.get(key)).state is SessionStatus.CATEGORY_SELECTED

    @pytest.mark.asyncio
    async def test_answer_moves_product_session_to_ai_active(self, orchestrator, registered, sessions):
        key = message("x").resolved_session_key()
        await orchestrator.handle_topic_selection(key, "product_ufb")

        await orchestrator.handle_inbound_message(message("What are the fight rules?"))

        state = await sessions.get(key)
        assert state.state is SessionStatus.AI_ACTIVE
        assert state.interaction_count == 1

    @pytest.mark.asyncio
    async def test_product_rules_in_prompt(self, orchestrator, registered, mock_llm):
        key = message("x").resolved_session_key()
        await orchestrator.handle_topic_selection(key, "product_ufb")

        await orchestrator.handle_inbound_message(message("What are the fight rules?"))

        assert "PRODUCT FOCUS: UFB" in mock_llm.calls[0][0]["content"]

    @pytest.mark.asyncio
    async def test_channel_documents_take_budget_first(
        self, test_config, store, sessions, contexts, content_cache, registry, mock_llm
    ):
        doc_url = "https://example.com/league-rules"
        page = f"<html><body><p>{'League check-in opens an hour before matches. ' * 10}</p></body></html>"
        ranker = SpyRanker(test_config.ranking)
        orchestrator = SupportOrchestrator(
            config=test_config.support,
            ranking=test_config.ranking,
            sessions=sessions,
            contexts=contexts,
            content=content_cache,
            ranker=ranker,
            llm=mock_llm,
            registry=registry,
            supplemental=SupplementalContentLoader(ContentConfig(), FakeFetcher({doc_url: page}), store),
        )
        await registry.add(TENANT, CHANNEL, {"supplemental_links": [doc_url]})

        await orchestrator.handle_inbound_message(message("When does check-in open?"))

        system_prompt = mock_llm.calls[0][0]["content"]
        assert "CHANNEL-SPECIFIC DOCUMENTATION" in system_prompt
        assert "League check-in opens" in system_prompt
        assert ranker.budgets[0] < test_config.ranking.token_budget

    @pytest.mark.asyncio
    async def test_history_stays_within_budget(self, orchestrator, registered, mock_llm):
        contexts = ConversationContextManager(ContextConfig(max_tokens=200, window_size=4))
        orchestrator.contexts = contexts

        for i in range(8):
            await orchestrator.handle_inbound_message(message(f"How do I reset my password? attempt {i}"))

        history = contexts.get_history(message("x").resolved_session_key())
        assert history[0]["role"] == "system"
        assert len(history) == 5
        assert history[-1]["role"] == "assistant"
        assert len(mock_llm.calls) == 8


class TestTopicSelection:
    """Test cases for SupportOrchestrator.handle_topic_selection."""

    @pytest.mark.asyncio
    async def test_general_topic_prompts_for_product(self, orchestrator, sessions):
        outcome = await orchestrator.handle_topic_selection("ticket-1", "category_general")

        assert outcome.kind is OutcomeKind.PROMPT
        assert "Which product" in outcome.text
        assert (await sessions.get("ticket-1")).state is SessionStatus.CATEGORY_SELECTED

    @pytest.mark.asyncio
    async def test_hardware_topic_escalates(self, orchestrator, sessions):
        outcome = await orchestrator.handle_topic_selection("ticket-1", "category_hardware")

        assert outcome.kind is OutcomeKind.ESCALATED
        assert outcome.text == TOPIC_INSTRUCTIONS[TopicCategory.HARDWARE]
        assert (await sessions.get("ticket-1")).escalated_to_human

    @pytest.mark.asyncio
    async def test_product_selection_resets_context(self, orchestrator, sessions, contexts):
        contexts.initialize("ticket-1", "old prompt")
        contexts.append_user("ticket-1", "old question")

        outcome = await orchestrator.handle_topic_selection("ticket-1", "product_earthrover")

        assert outcome.kind is OutcomeKind.PROMPT
        assert "Earthrover" in outcome.text
        history = contexts.get_history("ticket-1")
        assert len(history) == 1
        assert "PRODUCT FOCUS: Earthrover" in history[0]["content"]
        assert (await sessions.get("ticket-1")).selected_product == "earthrover"

    @pytest.mark.asyncio
    async def test_product_selection_clears_escalation(self, orchestrator, sessions):
        await sessions.escalate("ticket-1")

        await orchestrator.handle_topic_selection("ticket-1", "product_sam")

        state = await sessions.get("ticket-1")
        assert state.state is SessionStatus.PRODUCT_SELECTED
        assert not state.escalated_to_human

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["product_toaster", "category_shipping", "colour_blue"])
    async def test_unknown_selection(self, orchestrator, sessions, key):
        outcome = await orchestrator.handle_topic_selection("ticket-1", key)

        assert outcome.kind is OutcomeKind.UNKNOWN_SELECTION
        assert (await sessions.get("ticket-1")).state is SessionStatus.NEW


class TestEscalationCommands:
    """Test cases for explicit escalation and session close."""

    @pytest.mark.asyncio
    async def test_escalate_and_resume(self, orchestrator, registered, sessions, mock_llm):
        key = message("x").resolved_session_key()

        escalated = await orchestrator.handle_escalation_command(key, enable=True)
        assert escalated.kind is OutcomeKind.ESCALATED
        assert (await orchestrator.handle_inbound_message(message("hi there"))).kind is OutcomeKind.IGNORED

        resumed = await orchestrator.handle_escalation_command(key, enable=False)
        assert resumed.kind is OutcomeKind.PROMPT
        assert resumed.text == RESUMED_TEXT

        answer = await orchestrator.handle_inbound_message(message("How do I reset my password?"))
        assert answer.kind is OutcomeKind.ANSWER
        assert len(mock_llm.calls) == 1

    @pytest.mark.asyncio
    async def test_close_session_forgets_state_and_history(self, orchestrator, registered, sessions, contexts):
        outcome = await orchestrator.handle_inbound_message(message("How do I reset my password?"))
        await orchestrator.handle_escalation_command(outcome.session_key, enable=True)

        await orchestrator.close_session(outcome.session_key)

        assert not contexts.has(outcome.session_key)
        assert (await sessions.get(outcome.session_key)).state is SessionStatus.NEW

