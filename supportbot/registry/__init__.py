"""Per-tenant dynamic channel registry."""

from supportbot.registry.cache import ReconcilingCache
from supportbot.registry.models import ChannelRegistration
from supportbot.registry.registry import DynamicChannelRegistry

__all__ = ["ChannelRegistration", "DynamicChannelRegistry", "ReconcilingCache"]
