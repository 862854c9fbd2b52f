"""Per-tenant registry of channels in scope for support."""

import asyncio
import contextlib
import json
from typing import Any

from supportbot.core.config import RegistryConfig
from supportbot.core.exceptions import StoreError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import KeyValueStore
from supportbot.registry.cache import ReconcilingCache
from supportbot.registry.models import ChannelRegistration

logger = get_logger(__name__)


class DynamicChannelRegistry:
    """Channel registrations stored as one hash per tenant.

    Reads are served from an in-memory per-tenant set of active channels.
    Writes go to the store and push through to the set immediately; a
    background poll reconciles all tenants to heal drift from other
    process instances.
    """

    def __init__(self, store: KeyValueStore, config: RegistryConfig):
        self.store = store
        self.config = config
        self.cache = ReconcilingCache(self._load_active)
        self._poll_task: asyncio.Task | None = None

    def _key(self, tenant_id: str) -> str:
        return f"{self.config.key_prefix}{tenant_id}"

    async def _load_registrations(self, tenant_id: str) -> list[ChannelRegistration]:
        records = await self.store.hgetall(self._key(tenant_id))
        registrations = []
        for channel_id, raw in records.items():
            try:
                registrations.append(ChannelRegistration.from_record(channel_id, json.loads(raw)))
            except (ValueError, TypeError) as e:
                logger.warning(
                    "registration_record_skipped",
                    tenant_id=tenant_id,
                    channel_id=channel_id,
                    error=str(e),
                )
        return registrations

    async def _load_active(self, tenant_id: str) -> frozenset[str]:
        registrations = await self._load_registrations(tenant_id)
        return frozenset(r.channel_id for r in registrations if r.active)

    async def _save(self, tenant_id: str, registration: ChannelRegistration) -> None:
        await self.store.hset(
            self._key(tenant_id),
            registration.channel_id,
            json.dumps(registration.to_record(), ensure_ascii=False),
        )
        if registration.active:
            self.cache.add(tenant_id, registration.channel_id)
        else:
            self.cache.discard(tenant_id, registration.channel_id)

    async def is_active(self, tenant_id: str, channel_id: str) -> bool:
        """Whether a channel is registered and active; loads the tenant on first read."""
        return channel_id in await self.cache.get_or_load(tenant_id)

    async def get(self, tenant_id: str, channel_id: str) -> ChannelRegistration | None:
        raw = await self.store.hget(self._key(tenant_id), channel_id)
        if raw is None:
            return None
        try:
            return ChannelRegistration.from_record(channel_id, json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(
                "registration_record_skipped",
                tenant_id=tenant_id,
                channel_id=channel_id,
                error=str(e),
            )
            return None

    async def add(
        self,
        tenant_id: str,
        channel_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelRegistration:
        """Register a channel (replacing any previous registration).

        Raises:
            UnknownSelectionError: If metadata names an unknown product
        """
        registration = ChannelRegistration.create(channel_id, metadata)
        await self._save(tenant_id, registration)
        logger.info(
            "channel_registered",
            tenant_id=tenant_id,
            channel_id=channel_id,
            products=list(registration.allowed_products),
        )
        return registration

    async def edit(
        self,
        tenant_id: str,
        channel_id: str,
        changes: dict[str, Any],
    ) -> ChannelRegistration | None:
        """Update name, products, links or active flag; None if not registered."""
        current = await self.get(tenant_id, channel_id)
        if current is None:
            return None
        updated = current.with_changes(changes)
        await self._save(tenant_id, updated)
        logger.info("channel_edited", tenant_id=tenant_id, channel_id=channel_id, active=updated.active)
        return updated

    async def remove(self, tenant_id: str, channel_id: str) -> bool:
        """Remove a registration; False if it did not exist."""
        key = self._key(tenant_id)
        existed = await self.store.hget(key, channel_id) is not None
        await self.store.hdel(key, channel_id)
        self.cache.discard(tenant_id, channel_id)
        logger.info("channel_removed", tenant_id=tenant_id, channel_id=channel_id, existed=existed)
        return existed

    async def list_details(self, tenant_id: str) -> list[ChannelRegistration]:
        """All registrations of a tenant, newest first."""
        registrations = await self._load_registrations(tenant_id)
        return sorted(registrations, key=lambda r: r.added_at, reverse=True)

    async def links_for(self, tenant_id: str, channel_id: str) -> list[str]:
        """Supplemental document links of one registration."""
        registration = await self.get(tenant_id, channel_id)
        return list(registration.supplemental_links) if registration else []

    async def reconcile(self) -> None:
        """Rebuild every tenant's active set from the store."""
        keys = await self.store.scan(f"{self.config.key_prefix}*")
        tenants = [key[len(self.config.key_prefix) :] for key in keys]
        await self.cache.reconcile(tenants)
        logger.debug("registry_reconciled", tenants=len(tenants))

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.poll_interval_seconds)
            try:
                await self.reconcile()
            except StoreError as e:
                logger.error("registry_reconcile_failed", error=e.message)

    async def start(self) -> None:
        """Warm the cache and start polling."""
        if self._poll_task is not None:
            return
        try:
            await self.reconcile()
        except StoreError as e:
            logger.error("registry_reconcile_failed", error=e.message)
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info("registry_polling_started", interval_seconds=self.config.poll_interval_seconds)

    async def stop(self) -> None:
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None
        logger.info("registry_polling_stopped")
