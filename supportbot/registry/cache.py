"""Cache with write-through updates and periodic full reconciliation."""

from collections.abc import Awaitable, Callable, Iterable

from supportbot.core.logging import get_logger

logger = get_logger(__name__)

Loader = Callable[[str], Awaitable[frozenset[str]]]


class ReconcilingCache:
    """Per-key member sets fed by two invalidation sources.

    Writes push through with add/discard/put; reconcile reloads every key
    from the source of truth. A reconcile never overwrites a key that was
    written while its load was in flight.
    """

    def __init__(self, loader: Loader):
        self._loader = loader
        self._entries: dict[str, frozenset[str]] = {}
        self._versions: dict[str, int] = {}

    def _bump(self, key: str) -> None:
        self._versions[key] = self._versions.get(key, 0) + 1

    def is_warm(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> frozenset[str] | None:
        """Cached members, or None when the key has not been loaded."""
        return self._entries.get(key)

    async def get_or_load(self, key: str) -> frozenset[str]:
        """Cached members, loading synchronously on the first read of a key."""
        cached = self._entries.get(key)
        if cached is not None:
            return cached
        version = self._versions.get(key, 0)
        members = await self._loader(key)
        if self._versions.get(key, 0) == version:
            self._entries[key] = members
            return members
        return self._entries.get(key, members)

    def put(self, key: str, members: Iterable[str]) -> None:
        self._bump(key)
        self._entries[key] = frozenset(members)

    def add(self, key: str, member: str) -> None:
        """Add a member to a loaded key; a cold key stays cold."""
        if key not in self._entries:
            self.invalidate(key)
            return
        self.put(key, self._entries[key] | {member})

    def discard(self, key: str, member: str) -> None:
        if key not in self._entries:
            self.invalidate(key)
            return
        self.put(key, self._entries[key] - {member})

    def invalidate(self, key: str) -> None:
        """Forget a key; the next read reloads it."""
        self._bump(key)
        self._entries.pop(key, None)

    async def reconcile(self, keys: Iterable[str]) -> None:
        """Rebuild every key from the source and drop keys no longer present."""
        wanted = set(keys)
        for key in list(self._entries):
            if key not in wanted:
                self.invalidate(key)

        for key in wanted:
            version = self._versions.get(key, 0)
            members = await self._loader(key)
            if self._versions.get(key, 0) != version:
                logger.debug("reconcile_skipped_written_key", key=key)
                continue
            self._entries[key] = members

    def keys(self) -> list[str]:
        return list(self._entries)
