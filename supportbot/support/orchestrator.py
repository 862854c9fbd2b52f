"""Per-message coordination of session state, retrieval and the AI capability."""

import time

from supportbot.content.cache import ContentCache
from supportbot.content.catalog import Product, parse_product
from supportbot.content.models import Document
from supportbot.content.supplemental import SupplementalContentLoader
from supportbot.conversation.context_manager import ConversationContextManager
from supportbot.core.config import RankingConfig, SupportConfig
from supportbot.core.exceptions import (
    CompletionError,
    CorpusNotLoadedError,
    InvalidTransitionError,
    StoreError,
    UnknownSelectionError,
)
from supportbot.core.logging import get_logger, log_interaction
from supportbot.core.protocols import CompletionProvider, RelevanceRanker
from supportbot.llm.models import Completion
from supportbot.registry.registry import DynamicChannelRegistry
from supportbot.retrieval.formatting import format_channel_documents, format_context
from supportbot.session.models import SessionState, SessionStatus, parse_topic
from supportbot.session.store import ChannelSessionStore
from supportbot.support.escalation import EscalationDetector
from supportbot.support.models import InboundMessage, Outcome, OutcomeKind
from supportbot.support.prompts import (
    RESUMED_TEXT,
    TOPIC_INSTRUCTIONS,
    build_system_prompt,
    product_confirmation_text,
    product_picker_text,
)

logger = get_logger(__name__)

CATEGORY_PREFIX = "category_"
PRODUCT_PREFIX = "product_"

# Context placeholder until the first question of a freshly scoped conversation.
PENDING_CONTEXT_TEXT = "Articles are retrieved for each question."


class SupportOrchestrator:
    """Decide, per inbound event, between an AI answer, a fallback and a handoff.

    Holds no state of its own; sessions, histories, corpus and registrations
    are owned by the collaborators passed in.
    """

    def __init__(
        self,
        config: SupportConfig,
        ranking: RankingConfig,
        sessions: ChannelSessionStore,
        contexts: ConversationContextManager,
        content: ContentCache,
        ranker: RelevanceRanker,
        llm: CompletionProvider,
        registry: DynamicChannelRegistry,
        supplemental: SupplementalContentLoader | None = None,
    ):
        self.config = config
        self.ranking = ranking
        self.sessions = sessions
        self.contexts = contexts
        self.content = content
        self.ranker = ranker
        self.llm = llm
        self.registry = registry
        self.supplemental = supplemental
        self.escalation = EscalationDetector(config.escalation_phrases)

    async def handle_inbound_message(self, message: InboundMessage) -> Outcome:
        """Handle one user message and return what to send back.

        Escalated sessions and out-of-scope channels never reach the AI capability.
        """
        started = time.perf_counter()
        session_key = message.resolved_session_key()

        try:
            outcome = await self._handle(message, session_key)
        except (CorpusNotLoadedError, StoreError) as e:
            logger.error("service_degraded", session_key=session_key, code=e.code, error=e.message)
            outcome = Outcome(OutcomeKind.SERVICE_DEGRADED, self.config.fallback_message, session_key=session_key)

        log_interaction(
            session_key=session_key,
            outcome=outcome.kind.value,
            question=message.text,
            answer=outcome.text,
            confidence=outcome.confidence,
            tenant_id=message.tenant_id,
            channel_id=message.channel_id,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return outcome

    async def _handle(self, message: InboundMessage, session_key: str) -> Outcome:
        if self.config.require_registered_channel:
            scope_channel = message.parent_channel_id if message.thread_id else message.channel_id
            if not await self.registry.is_active(message.tenant_id, scope_channel or message.channel_id):
                return Outcome(OutcomeKind.OUT_OF_SCOPE, self.config.out_of_scope_message, session_key=session_key)

        session = await self.sessions.get(session_key)
        if session.is_escalated:
            logger.debug("escalated_session_ignored", session_key=session_key)
            return Outcome(OutcomeKind.IGNORED, session_key=session_key)

        if self.escalation.is_requested(message.text):
            await self.sessions.escalate(session_key, reason="user_request")
            logger.info("session_escalated", session_key=session_key, reason="user_request")
            return Outcome(OutcomeKind.ESCALATED, self.config.handoff_message, session_key=session_key)

        # Ticket flow: a topic is chosen but no product yet.
        if session.state is SessionStatus.CATEGORY_SELECTED:
            logger.debug("product_selection_requested", session_key=session_key)
            return Outcome(OutcomeKind.PROMPT, product_picker_text(), session_key=session_key)

        snapshot = self.content.snapshot()
        product = self._product(session)

        channel_docs = await self._channel_documents(message)
        channel_tokens = sum(doc.estimated_tokens for doc in channel_docs)
        ranked = await self.ranker.rank(
            message.text,
            snapshot,
            max(self.ranking.token_budget - channel_tokens, 0),
        )
        system_prompt = build_system_prompt(
            format_context(ranked, message.text),
            product=product,
            channel_text=format_channel_documents(channel_docs),
        )

        if not self.contexts.initialize(session_key, system_prompt):
            self.contexts.set_system_prompt(session_key, system_prompt)
        self.contexts.append_user(session_key, message.text)
        history = self.contexts.get_history(session_key)

        try:
            completion = await self.llm.complete(history)
        except CompletionError as e:
            logger.warning("completion_unavailable", session_key=session_key, provider=e.provider)
            completion = Completion(is_valid=False, text="", confidence=None)

        outcome = self._gate(completion, session_key)
        self.contexts.append_assistant(session_key, outcome.text or "")

        if session.state is SessionStatus.PRODUCT_SELECTED:
            await self.sessions.activate(session_key)
        await self.sessions.record_interaction(session_key)
        return outcome

    def _gate(self, completion: Completion, session_key: str) -> Outcome:
        """Confidence gate: the answer, a low-confidence disclaimer or the generic fallback."""
        if not completion.is_valid:
            logger.info("confidence_gate_fallback", session_key=session_key, reason="invalid")
            return Outcome(OutcomeKind.FALLBACK, self.config.fallback_message, 0.0, session_key)

        confidence = completion.effective_confidence
        if confidence < self.config.confidence_threshold:
            logger.info(
                "confidence_gate_fallback",
                session_key=session_key,
                confidence=confidence,
                threshold=self.config.confidence_threshold,
            )
            return Outcome(OutcomeKind.LOW_CONFIDENCE, self.config.low_confidence_message, confidence, session_key)

        return Outcome(OutcomeKind.ANSWER, completion.text, confidence, session_key)

    def _product(self, session: SessionState) -> Product | None:
        if not session.selected_product:
            return None
        try:
            return parse_product(session.selected_product)
        except UnknownSelectionError:
            logger.warning("session_product_unknown", product=session.selected_product)
            return None

    async def _channel_documents(self, message: InboundMessage) -> list[Document]:
        """Channel-specific documents that fit in the token budget, in link order."""
        if self.supplemental is None:
            return []
        channel_id = message.parent_channel_id if message.thread_id else message.channel_id
        links = await self.registry.links_for(message.tenant_id, channel_id or message.channel_id)
        if not links:
            return []

        selected: list[Document] = []
        used = 0
        for document in await self.supplemental.load(links):
            if used + document.estimated_tokens > self.ranking.token_budget:
                break
            selected.append(document)
            used += document.estimated_tokens
        return selected

    async def handle_topic_selection(self, session_key: str, selection_key: str) -> Outcome:
        """Apply a category_<topic> or product_<product> selection.

        Returns the prompt to show next: the product picker, a product
        confirmation, or the instructions of a topic that escalates.
        """
        try:
            if selection_key.startswith(CATEGORY_PREFIX):
                topic = parse_topic(selection_key.removeprefix(CATEGORY_PREFIX))
                await self.sessions.select_category(session_key, topic)
                if topic.escalates:
                    return Outcome(OutcomeKind.ESCALATED, TOPIC_INSTRUCTIONS[topic], session_key=session_key)
                return Outcome(OutcomeKind.PROMPT, product_picker_text(), session_key=session_key)

            if selection_key.startswith(PRODUCT_PREFIX):
                product = parse_product(selection_key.removeprefix(PRODUCT_PREFIX))
                await self.sessions.select_product(session_key, product.value)
                self.contexts.reset(
                    session_key,
                    build_system_prompt(PENDING_CONTEXT_TEXT, product=product),
                )
                return Outcome(OutcomeKind.PROMPT, product_confirmation_text(product), session_key=session_key)

            raise UnknownSelectionError(f"Unknown selection: {selection_key}", key=selection_key)

        except UnknownSelectionError as e:
            logger.warning("unknown_selection", session_key=session_key, key=e.key)
            return Outcome(OutcomeKind.UNKNOWN_SELECTION, e.message, session_key=session_key)
        except InvalidTransitionError as e:
            logger.warning("selection_rejected", session_key=session_key, error=e.message)
            return Outcome(OutcomeKind.UNKNOWN_SELECTION, e.message, session_key=session_key)
        except StoreError as e:
            logger.error("service_degraded", session_key=session_key, code=e.code, error=e.message)
            return Outcome(OutcomeKind.SERVICE_DEGRADED, self.config.fallback_message, session_key=session_key)

    async def handle_escalation_command(self, session_key: str, enable: bool) -> Outcome:
        """Explicitly escalate (enable) or resume AI answering (disable)."""
        try:
            if enable:
                await self.sessions.escalate(session_key, reason="command")
                logger.info("session_escalated", session_key=session_key, reason="command")
                return Outcome(OutcomeKind.ESCALATED, self.config.handoff_message, session_key=session_key)

            state = await self.sessions.resume(session_key)
            logger.info("session_resumed", session_key=session_key, state=state.state.value)
            return Outcome(OutcomeKind.PROMPT, RESUMED_TEXT, session_key=session_key)
        except StoreError as e:
            logger.error("service_degraded", session_key=session_key, code=e.code, error=e.message)
            return Outcome(OutcomeKind.SERVICE_DEGRADED, self.config.fallback_message, session_key=session_key)

    async def close_session(self, session_key: str) -> None:
        """Forget a closed thread or ticket: its session state and its history."""
        await self.sessions.clear(session_key)
        self.contexts.clear(session_key)
        logger.info("session_closed", session_key=session_key)
