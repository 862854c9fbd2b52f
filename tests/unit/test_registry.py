"""Tests for the dynamic channel registry."""

import asyncio

import pytest

from supportbot.core.exceptions import UnknownSelectionError
from supportbot.registry.cache import ReconcilingCache
from supportbot.registry.models import ChannelRegistration
from supportbot.registry.registry import DynamicChannelRegistry


class TestChannelRegistration:
    """Test cases for ChannelRegistration records."""

    def test_record_round_trip_keeps_stored_keys(self):
        registration = ChannelRegistration.create(
            "c1",
            {"display_name": "ufb-help", "allowed_products": ["UFB", "ufb"], "supplemental_links": ["https://a"]},
        )
        record = registration.to_record()

        assert record["name"] == "ufb-help"
        assert record["products"] == ["ufb"]
        assert record["googleDocLinks"] == ["https://a"]
        assert ChannelRegistration.from_record("c1", record) == registration

    def test_unknown_product_is_rejected(self):
        with pytest.raises(UnknownSelectionError):
            ChannelRegistration.create("c1", {"allowed_products": ["toaster"]})

    def test_from_record_tolerates_missing_fields(self):
        registration = ChannelRegistration.from_record("c1", {})
        assert registration.active is True
        assert registration.allowed_products == ()


class TestDynamicChannelRegistry:
    """Test cases for DynamicChannelRegistry."""

    @pytest.mark.asyncio
    async def test_add_is_visible_immediately(self, registry):
        assert not await registry.is_active("t1", "c1")

        await registry.add("t1", "c1", {"display_name": "support"})

        assert await registry.is_active("t1", "c1")
        assert not await registry.is_active("t2", "c1")

    @pytest.mark.asyncio
    async def test_remove_is_visible_immediately(self, registry):
        await registry.add("t1", "c1")
        assert await registry.is_active("t1", "c1")

        assert await registry.remove("t1", "c1") is True
        assert not await registry.is_active("t1", "c1")
        assert await registry.remove("t1", "c1") is False

    @pytest.mark.asyncio
    async def test_edit_active_flag(self, registry):
        await registry.add("t1", "c1")

        updated = await registry.edit("t1", "c1", {"active": False, "supplemental_links": ["https://docs"]})

        assert updated.active is False
        assert not await registry.is_active("t1", "c1")
        assert await registry.links_for("t1", "c1") == ["https://docs"]
        assert await registry.edit("t1", "missing", {"active": True}) is None

    @pytest.mark.asyncio
    async def test_list_details_newest_first(self, registry):
        await registry.add("t1", "old")
        await asyncio.sleep(0.001)
        await registry.add("t1", "new")

        channels = await registry.list_details("t1")
        assert [c.channel_id for c in channels] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_reconcile_picks_up_other_instances(self, store, test_config, registry):
        assert not await registry.is_active("t1", "c1")

        other_instance = DynamicChannelRegistry(store, test_config.registry)
        await other_instance.add("t1", "c1")
        # Still the cached view until the next reconcile
        assert not await registry.is_active("t1", "c1")

        await registry.reconcile()
        assert await registry.is_active("t1", "c1")

    @pytest.mark.asyncio
    async def test_add_on_unloaded_tenant_keeps_existing_channels(self, store, test_config, registry):
        other_instance = DynamicChannelRegistry(store, test_config.registry)
        await other_instance.add("t1", "existing")

        await registry.add("t1", "new")

        assert await registry.is_active("t1", "existing")
        assert await registry.is_active("t1", "new")

    @pytest.mark.asyncio
    async def test_remove_on_unloaded_tenant_keeps_other_channels(self, store, test_config, registry):
        other_instance = DynamicChannelRegistry(store, test_config.registry)
        await other_instance.add("t1", "a")
        await other_instance.add("t1", "b")

        await registry.remove("t1", "a")

        assert not await registry.is_active("t1", "a")
        assert await registry.is_active("t1", "b")

    @pytest.mark.asyncio
    async def test_corrupt_records_are_skipped(self, store, registry):
        await store.hset("support_channels:t1", "bad", "not json")
        await registry.add("t1", "good")

        channels = await registry.list_details("t1")
        assert [c.channel_id for c in channels] == ["good"]

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store, registry):
        await registry.add("t1", "c1")
        registry.cache.invalidate("t1")

        await registry.start()
        assert registry.cache.is_warm("t1")

        await registry.stop()
        assert registry._poll_task is None


class TestReconcilingCache:
    """Test cases for ReconcilingCache."""

    @pytest.mark.asyncio
    async def test_reconcile_does_not_clobber_concurrent_write(self):
        """Test that a write made while a reload is in flight survives it."""
        release = asyncio.Event()

        async def slow_loader(key: str) -> frozenset[str]:
            await release.wait()
            return frozenset()

        cache = ReconcilingCache(slow_loader)
        cache.put("t1", set())
        reconcile = asyncio.create_task(cache.reconcile(["t1"]))
        await asyncio.sleep(0)

        cache.add("t1", "c1")
        release.set()
        await reconcile

        assert cache.get("t1") == frozenset({"c1"})

    @pytest.mark.asyncio
    async def test_reconcile_drops_vanished_keys(self):
        async def loader(key: str) -> frozenset[str]:
            return frozenset({"c1"})

        cache = ReconcilingCache(loader)
        cache.put("gone", {"c9"})

        await cache.reconcile(["t1"])

        assert cache.get("gone") is None
        assert cache.get("t1") == frozenset({"c1"})

    @pytest.mark.asyncio
    async def test_writes_to_cold_key_leave_it_cold(self):
        async def loader(key: str) -> frozenset[str]:
            return frozenset({"a", "b"})

        cache = ReconcilingCache(loader)
        cache.add("t1", "c")
        cache.discard("t1", "a")

        assert not cache.is_warm("t1")
        assert await cache.get_or_load("t1") == frozenset({"a", "b"})
