"""Request and response schemas for the API."""

from datetime import datetime

from pydantic import BaseModel, Field

# --- Request Models ---


class InboundMessageRequest(BaseModel):
    """A chat message forwarded by a platform adapter."""

    author_id: str = Field(..., min_length=1, description="Platform user id of the author")
    tenant_id: str = Field(..., min_length=1, description="Tenant (server) id")
    channel_id: str = Field(..., min_length=1, description="Channel the message was posted in")
    text: str = Field(..., min_length=1, max_length=10000, description="Message text")
    thread_id: str | None = Field(default=None, description="Thread id when posted in a thread")
    parent_channel_id: str | None = Field(default=None, description="Channel owning the thread")
    personal_memory: bool = Field(default=False, description="Use the author's cross-channel context")
    session_key: str | None = Field(default=None, description="Explicit session key (e.g. a ticket id)")


class TopicSelectionRequest(BaseModel):
    """Topic or product picked from a button or menu."""

    selection_key: str = Field(
        ...,
        min_length=1,
        description="category_<topic> or product_<product>",
    )


class EscalationRequest(BaseModel):
    """Explicit escalate / resume command."""

    enable: bool = Field(..., description="True to hand off to humans, False to resume the AI")


class ChannelCreateRequest(BaseModel):
    """Put a channel in scope for support."""

    channel_id: str = Field(..., min_length=1, description="Channel id")
    display_name: str = Field(default="", description="Human readable channel name")
    allowed_products: list[str] = Field(default_factory=list, description="Products answered in the channel")
    supplemental_links: list[str] = Field(default_factory=list, description="Channel-specific document links")
    added_by: str = Field(default="admin", description="Who registered the channel")


class ChannelUpdateRequest(BaseModel):
    """Partial update of a channel registration."""

    display_name: str | None = Field(default=None, description="Human readable channel name")
    allowed_products: list[str] | None = Field(default=None, description="Products answered in the channel")
    supplemental_links: list[str] | None = Field(default=None, description="Channel-specific document links")
    active: bool | None = Field(default=None, description="Whether the channel is in scope")


# --- Response Models ---


class OutcomeResponse(BaseModel):
    """What the adapter should do in response to an event."""

    kind: str = Field(..., description="Outcome kind")
    text: str | None = Field(default=None, description="Text to send back, if any")
    confidence: float | None = Field(default=None, description="Confidence of an AI answer")
    session_key: str | None = Field(default=None, description="Session the event belonged to")
    should_reply: bool = Field(..., description="Whether the adapter should post the text")


class SessionStateResponse(BaseModel):
    """Persisted session state."""

    session_key: str = Field(..., description="Session key")
    state: str = Field(..., description="Position in the support flow")
    topic_category: str | None = Field(default=None, description="Selected ticket topic")
    selected_product: str | None = Field(default=None, description="Selected product")
    escalated_to_human: bool = Field(..., description="Whether a human has taken over")
    escalation_reason: str | None = Field(default=None, description="Why the session was escalated")
    interaction_count: int = Field(..., description="Answered messages")
    last_activity_at: datetime = Field(..., description="Last handled message")


class ChannelResponse(BaseModel):
    """Channel registration."""

    channel_id: str = Field(..., description="Channel id")
    display_name: str = Field(..., description="Human readable channel name")
    allowed_products: list[str] = Field(..., description="Products answered in the channel")
    supplemental_links: list[str] = Field(..., description="Channel-specific document links")
    added_at: datetime = Field(..., description="Registration timestamp")
    added_by: str = Field(..., description="Who registered the channel")
    active: bool = Field(..., description="Whether the channel is in scope")


class ChannelListResponse(BaseModel):
    """Registrations of one tenant, newest first."""

    channels: list[ChannelResponse] = Field(..., description="Channel registrations")
    total: int = Field(..., description="Total count")


class CorpusStatusResponse(BaseModel):
    """Content cache status."""

    initialized: bool = Field(..., description="Whether a snapshot has loaded")
    last_refreshed_at: datetime | None = Field(default=None, description="When the snapshot was built")
    categories: dict[str, int] = Field(default_factory=dict, description="Document count per category")
    total_documents: int = Field(default=0, description="Documents in the snapshot")
    refreshing: bool = Field(default=False, description="Whether a refresh is in flight")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    llm_provider: str = Field(..., description="Active LLM provider")
    llm_model: str = Field(..., description="Active LLM model")
    store_backend: str = Field(..., description="Active key-value store backend")
    ranking_strategy: str = Field(..., description="Active relevance ranking strategy")
    corpus_loaded: bool = Field(..., description="Whether the content corpus is loaded")


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: dict = Field(..., description="Error details")
