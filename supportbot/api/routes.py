"""API routes for the support engine."""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException

from supportbot.api.schemas import (
    ChannelCreateRequest,
    ChannelListResponse,
    ChannelResponse,
    ChannelUpdateRequest,
    CorpusStatusResponse,
    EscalationRequest,
    HealthResponse,
    InboundMessageRequest,
    OutcomeResponse,
    SessionStateResponse,
    TopicSelectionRequest,
)
from supportbot.content.cache import ContentCache
from supportbot.core.config import AppConfig
from supportbot.core.di_container import DIContainer
from supportbot.core.exceptions import StoreError, UnknownSelectionError
from supportbot.core.logging import get_logger
from supportbot.registry.models import ChannelRegistration
from supportbot.registry.registry import DynamicChannelRegistry
from supportbot.session.store import ChannelSessionStore
from supportbot.support.models import InboundMessage, Outcome
from supportbot.support.orchestrator import SupportOrchestrator

logger = get_logger(__name__)

router = APIRouter()


def _outcome_response(outcome: Outcome) -> OutcomeResponse:
    return OutcomeResponse(
        kind=outcome.kind.value,
        text=outcome.text,
        confidence=outcome.confidence,
        session_key=outcome.session_key,
        should_reply=outcome.should_reply,
    )


def _channel_response(registration: ChannelRegistration) -> ChannelResponse:
    return ChannelResponse(
        channel_id=registration.channel_id,
        display_name=registration.display_name,
        allowed_products=list(registration.allowed_products),
        supplemental_links=list(registration.supplemental_links),
        added_at=registration.added_at,
        added_by=registration.added_by,
        active=registration.active,
    )


# === Support Flow Endpoints ===


@router.post("/messages", response_model=OutcomeResponse)
@inject
async def handle_message(
    request: InboundMessageRequest,
    orchestrator: SupportOrchestrator = Depends(Provide[DIContainer.orchestrator]),  # noqa: B008
) -> OutcomeResponse:
    """Handle one inbound chat message.

    The outcome tells the adapter whether to post an answer, a fallback,
    a handoff notice, or nothing at all.
    """
    outcome = await orchestrator.handle_inbound_message(InboundMessage(**request.model_dump()))
    return _outcome_response(outcome)


@router.post("/sessions/{session_key}/selection", response_model=OutcomeResponse)
@inject
async def select_topic(
    session_key: str,
    request: TopicSelectionRequest,
    orchestrator: SupportOrchestrator = Depends(Provide[DIContainer.orchestrator]),  # noqa: B008
) -> OutcomeResponse:
    """Apply a topic or product selection."""
    outcome = await orchestrator.handle_topic_selection(session_key, request.selection_key)
    return _outcome_response(outcome)


@router.post("/sessions/{session_key}/escalation", response_model=OutcomeResponse)
@inject
async def set_escalation(
    session_key: str,
    request: EscalationRequest,
    orchestrator: SupportOrchestrator = Depends(Provide[DIContainer.orchestrator]),  # noqa: B008
) -> OutcomeResponse:
    """Hand a session to humans, or give it back to the AI."""
    outcome = await orchestrator.handle_escalation_command(session_key, request.enable)
    return _outcome_response(outcome)


@router.get("/sessions/{session_key}", response_model=SessionStateResponse)
@inject
async def get_session(
    session_key: str,
    sessions: ChannelSessionStore = Depends(Provide[DIContainer.session_store]),  # noqa: B008
) -> SessionStateResponse:
    """Current session state (the default NEW state if none is stored)."""
    try:
        state = await sessions.get(session_key)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=e.message) from e

    return SessionStateResponse(
        session_key=session_key,
        state=state.state.value,
        topic_category=state.topic_category.value if state.topic_category else None,
        selected_product=state.selected_product,
        escalated_to_human=state.escalated_to_human,
        escalation_reason=state.escalation_reason,
        interaction_count=state.interaction_count,
        last_activity_at=state.last_activity_at,
    )


@router.delete("/sessions/{session_key}")
@inject
async def close_session(
    session_key: str,
    orchestrator: SupportOrchestrator = Depends(Provide[DIContainer.orchestrator]),  # noqa: B008
):
    """Forget a closed thread or ticket."""
    try:
        await orchestrator.close_session(session_key)
        return {"status": "cleared", "session_key": session_key}
    except StoreError as e:
        raise HTTPException(status_code=503, detail=e.message) from e


# === Channel Registry Endpoints ===


@router.get("/tenants/{tenant_id}/channels", response_model=ChannelListResponse)
@inject
async def list_channels(
    tenant_id: str,
    registry: DynamicChannelRegistry = Depends(Provide[DIContainer.registry]),  # noqa: B008
) -> ChannelListResponse:
    """List a tenant's channel registrations, newest first."""
    registrations = await registry.list_details(tenant_id)
    return ChannelListResponse(
        channels=[_channel_response(r) for r in registrations],
        total=len(registrations),
    )


@router.post("/tenants/{tenant_id}/channels", response_model=ChannelResponse, status_code=201)
@inject
async def add_channel(
    tenant_id: str,
    request: ChannelCreateRequest,
    registry: DynamicChannelRegistry = Depends(Provide[DIContainer.registry]),  # noqa: B008
) -> ChannelResponse:
    """Register a channel; it is in scope immediately."""
    try:
        registration = await registry.add(
            tenant_id,
            request.channel_id,
            request.model_dump(exclude={"channel_id"}),
        )
    except UnknownSelectionError as e:
        logger.warning("channel_rejected", tenant_id=tenant_id, channel_id=request.channel_id, key=e.key)
        raise HTTPException(status_code=400, detail=e.message) from e
    return _channel_response(registration)


@router.get("/tenants/{tenant_id}/channels/{channel_id}", response_model=ChannelResponse)
@inject
async def get_channel(
    tenant_id: str,
    channel_id: str,
    registry: DynamicChannelRegistry = Depends(Provide[DIContainer.registry]),  # noqa: B008
) -> ChannelResponse:
    registration = await registry.get(tenant_id, channel_id)
    if registration is None:
        raise HTTPException(status_code=404, detail="Channel not registered")
    return _channel_response(registration)


@router.patch("/tenants/{tenant_id}/channels/{channel_id}", response_model=ChannelResponse)
@inject
async def edit_channel(
    tenant_id: str,
    channel_id: str,
    request: ChannelUpdateRequest,
    registry: DynamicChannelRegistry = Depends(Provide[DIContainer.registry]),  # noqa: B008
) -> ChannelResponse:
    """Update name, products, links or active flag of a registration."""
    try:
        registration = await registry.edit(tenant_id, channel_id, request.model_dump(exclude_none=True))
    except UnknownSelectionError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    if registration is None:
        raise HTTPException(status_code=404, detail="Channel not registered")
    return _channel_response(registration)


@router.delete("/tenants/{tenant_id}/channels/{channel_id}")
@inject
async def remove_channel(
    tenant_id: str,
    channel_id: str,
    registry: DynamicChannelRegistry = Depends(Provide[DIContainer.registry]),  # noqa: B008
):
    """Take a channel out of scope."""
    if not await registry.remove(tenant_id, channel_id):
        raise HTTPException(status_code=404, detail="Channel not registered")
    return {"status": "removed", "channel_id": channel_id}


# === Corpus Endpoints ===


@router.get("/corpus", response_model=CorpusStatusResponse)
@inject
async def corpus_status(
    content_cache: ContentCache = Depends(Provide[DIContainer.content_cache]),  # noqa: B008
) -> CorpusStatusResponse:
    """Snapshot age and per-category document counts."""
    return CorpusStatusResponse(**content_cache.status())


@router.post("/corpus/refresh", response_model=CorpusStatusResponse)
@inject
async def refresh_corpus(
    content_cache: ContentCache = Depends(Provide[DIContainer.content_cache]),  # noqa: B008
) -> CorpusStatusResponse:
    """Re-crawl the help center now; joins a refresh already in flight."""
    await content_cache.refresh(force=True)
    return CorpusStatusResponse(**content_cache.status())


@router.get("/health", response_model=HealthResponse)
@inject
async def health(
    config: AppConfig = Depends(Provide[DIContainer.config]),  # noqa: B008
    content_cache: ContentCache = Depends(Provide[DIContainer.content_cache]),  # noqa: B008
) -> HealthResponse:
    """Check service health and configuration."""
    return HealthResponse(
        status="ok" if content_cache.is_initialized else "degraded",
        llm_provider=config.llm.provider,
        llm_model=config.llm.model,
        store_backend=config.store.backend,
        ranking_strategy=config.ranking.strategy,
        corpus_loaded=content_cache.is_initialized,
    )
